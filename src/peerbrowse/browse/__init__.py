"""Browse - inspect the shared directories of a remote peer.

Created: 2026-10-19

A browse asks the peer service for a peer's complete share listing, waits
for it while polling progress, and turns the flat list of directory paths
into a navigable tree. The session survives restarts through a compressed
snapshot.

Usage:
    from peerbrowse.browse import BrowseSession, SessionPersistence, UsersClient
    from peerbrowse.browse import FileKeyValueStorage

    persistence = SessionPersistence(FileKeyValueStorage())
    async with UsersClient() as client, BrowseSession(client, persistence) as session:
        state = await session.browse("alice")
        for root in state.tree:
            print(root.name, len(root.children))
"""

# Client
from peerbrowse.browse.client import BrowseBackend, UsersClient
from peerbrowse.browse.errors import BrowseFailure, PeerBrowseError, PersistenceError

# Models
from peerbrowse.browse.models import (
    BrowseInfo,
    BrowseResult,
    BrowseSnapshot,
    BrowseState,
    BrowseStatus,
    DirectoryNode,
    DirectoryRecord,
    FileRecord,
)

# Persistence
from peerbrowse.browse.persistence import (
    FileKeyValueStorage,
    KeyValueStorage,
    MemoryKeyValueStorage,
    SessionPersistence,
)
from peerbrowse.browse.poller import ProgressPoller

# Session
from peerbrowse.browse.session import BrowseSession

# Tree
from peerbrowse.browse.tree import (
    build_directory_tree,
    count_info,
    find_node,
    infer_separator,
    iter_nodes,
    merge_locked,
    path_depth,
)

__all__ = [
    # Models
    "BrowseInfo",
    "BrowseResult",
    "BrowseSnapshot",
    "BrowseState",
    "BrowseStatus",
    "DirectoryNode",
    "DirectoryRecord",
    "FileRecord",
    # Errors
    "PeerBrowseError",
    "BrowseFailure",
    "PersistenceError",
    # Tree
    "build_directory_tree",
    "count_info",
    "find_node",
    "infer_separator",
    "iter_nodes",
    "merge_locked",
    "path_depth",
    # Client
    "BrowseBackend",
    "UsersClient",
    # Session
    "BrowseSession",
    "ProgressPoller",
    # Persistence
    "KeyValueStorage",
    "FileKeyValueStorage",
    "MemoryKeyValueStorage",
    "SessionPersistence",
]

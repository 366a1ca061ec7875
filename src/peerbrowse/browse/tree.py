"""Directory tree construction from a peer's flat share listing.

The peer reports every shared directory as one record carrying its full
path. Nesting is recovered lexically: a record's depth is the number of
path segments in its name, and a directory's children are the records one
level deeper whose name extends its own.

Nothing here touches the filesystem or the network.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence

from peerbrowse.browse.models import BrowseInfo, DirectoryNode, DirectoryRecord

logger = logging.getLogger(__name__)

SEPARATORS = ("\\", "/")


def infer_separator(directories: Iterable[DirectoryRecord]) -> str | None:
    """Return the path separator used by the first name that contains one.

    Only pass the unlocked directories; locked ones never decide the
    separator. Returns None when no name contains ``\\`` or ``/``.
    """
    for directory in directories:
        name = directory.name or ""
        for separator in SEPARATORS:
            if separator in name:
                return separator
    return None


def path_depth(name: str, separator: str | None) -> int:
    """Number of path segments in ``name``. Without a separator every name is depth 1."""
    if not separator:
        return 1
    return len(name.split(separator))


def merge_locked(
    directories: Sequence[DirectoryRecord],
    locked_directories: Sequence[DirectoryRecord],
) -> list[DirectoryRecord]:
    """Unlocked directories followed by copies of the locked ones, flagged ``locked``."""
    merged = list(directories)
    merged.extend(d.model_copy(update={"locked": True}) for d in locked_directories)
    return merged


def count_info(
    directories: Sequence[DirectoryRecord],
    locked_directories: Sequence[DirectoryRecord],
) -> BrowseInfo:
    """Directory and file counters for the unmerged listing."""
    return BrowseInfo(
        directories=len(directories),
        files=sum(d.fileCount for d in directories),
        lockedDirectories=len(locked_directories),
        lockedFiles=sum(d.fileCount for d in locked_directories),
    )


def build_directory_tree(
    directories: Sequence[DirectoryRecord],
    separator: str | None,
) -> list[DirectoryNode]:
    """Build the directory forest for a share listing.

    Roots are the shallowest records. Order within each level follows the
    input order. An empty listing, or one whose first record has no name,
    yields an empty forest.
    """
    if not directories or directories[0].name is None:
        return []

    # Single pass: split each name once and bucket by depth
    by_depth: dict[int, list[DirectoryRecord]] = {}
    for directory in directories:
        if directory.name is None:
            logger.debug("Skipping unnamed directory record")
            continue
        by_depth.setdefault(path_depth(directory.name, separator), []).append(directory)

    root_depth = min(by_depth)
    return [
        _expand(by_depth, root, separator, root_depth + 1)
        for root in by_depth[root_depth]
    ]


def _expand(
    by_depth: dict[int, list[DirectoryRecord]],
    record: DirectoryRecord,
    separator: str | None,
    depth: int,
) -> DirectoryNode:
    children: list[DirectoryNode] = []
    if separator and depth in by_depth:
        prefix = f"{record.name}{separator}"
        children = [
            _expand(by_depth, candidate, separator, depth + 1)
            for candidate in by_depth[depth]
            if candidate.name.startswith(prefix)
        ]
    return DirectoryNode.model_validate({**record.model_dump(), "children": children})


def iter_nodes(
    tree: Iterable[DirectoryNode], depth: int = 0
) -> Iterator[tuple[int, DirectoryNode]]:
    """Depth-first, pre-order walk yielding ``(depth, node)``; roots are depth 0."""
    for node in tree:
        yield depth, node
        yield from iter_nodes(node.children, depth + 1)


def find_node(tree: Iterable[DirectoryNode], name: str) -> DirectoryNode | None:
    """Find a directory by its full name."""
    for _, node in iter_nodes(tree):
        if node.name == name:
            return node
    return None

"""Browse data models.

Created: 2026-10-19

These models define the data flowing through a browse:
- Records as the peer service reports them (directories, files, progress)
- The directory tree built from those records
- The session snapshot that is persisted between runs

Design notes:
- Wire field names (``fileCount``, ``lockedDirectories``, ...) are kept as
  the peer service sends them so responses validate without a mapping layer
- Records allow extra fields; anything beyond what the tree needs is passed
  through untouched (bit rate, length, extension, ...)
- ``BrowseSnapshot()`` is the initial, idle session
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class BrowseState(str, Enum):
    """Browse session lifecycle."""

    IDLE = "idle"  # Nothing requested yet, or cleared
    PENDING = "pending"  # Browse request in flight
    COMPLETE = "complete"  # Tree is built
    ERROR = "error"  # Browse request failed


class FileRecord(BaseModel):
    """A shared file. ``filename`` is the bare name, without its directory."""

    model_config = {"extra": "allow"}

    filename: str
    size: int = 0


class DirectoryRecord(BaseModel):
    """A shared directory as reported by the peer; ``name`` is the full path."""

    model_config = {"extra": "allow"}

    name: str | None = None
    fileCount: int = 0
    files: list[FileRecord] = []
    locked: bool = False


class DirectoryNode(DirectoryRecord):
    """A directory placed in the tree, with its direct subdirectories."""

    children: list[DirectoryNode] = []


class BrowseResult(BaseModel):
    """Response of a browse request."""

    directories: list[DirectoryRecord] = []
    lockedDirectories: list[DirectoryRecord] = []


class BrowseStatus(BaseModel):
    """Progress of a browse request."""

    model_config = {"extra": "allow"}

    percentComplete: float = 0.0


class BrowseInfo(BaseModel):
    """Share counters, taken from the listing before locked directories are merged in."""

    directories: int = 0
    files: int = 0
    lockedDirectories: int = 0
    lockedFiles: int = 0

    def summary(self) -> str:
        return (
            f"{self.files + self.lockedFiles} files in "
            f"{self.directories + self.lockedDirectories} directories "
            f"(including {self.lockedFiles} files in "
            f"{self.lockedDirectories} locked directories)"
        )


class BrowseSnapshot(BaseModel):
    """Observable state of a browse session; this is what gets persisted."""

    username: str = ""
    browseState: BrowseState = BrowseState.IDLE
    browseStatus: float = 0.0  # Last polled percent complete
    browseError: str | None = None
    tree: list[DirectoryNode] = []
    separator: str | None = None
    selectedDirectory: DirectoryNode | None = None  # Always stored without children
    info: BrowseInfo = Field(default_factory=BrowseInfo)

    @property
    def pending(self) -> bool:
        return self.browseState == BrowseState.PENDING

    @property
    def empty_tree(self) -> bool:
        return not self.tree

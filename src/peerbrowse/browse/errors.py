"""Errors raised while browsing a peer."""

from __future__ import annotations


class PeerBrowseError(Exception):
    """Base class for peerbrowse errors."""


class BrowseFailure(PeerBrowseError):
    """The peer service could not produce a listing for ``username``."""

    def __init__(self, username: str, detail: str, status_code: int | None = None):
        self.username = username
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"Failed to browse {username}: {detail}")


class PersistenceError(PeerBrowseError):
    """A stored session snapshot could not be decoded."""

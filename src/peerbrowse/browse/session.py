"""Browse session: the lifecycle of one peer share listing.

States: idle -> pending -> complete | error; ``clear()`` returns to idle
from anywhere. Each transition replaces the session's ``BrowseSnapshot``,
notifies listeners, and (for lasting changes) persists it.

Requests are tagged with the session generation that issued them. Browse
results and progress updates that arrive after a ``clear()`` or a newer
``browse()`` are dropped instead of overwriting the live session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from peerbrowse.browse.client import BrowseBackend
from peerbrowse.browse.models import (
    BrowseResult,
    BrowseSnapshot,
    BrowseState,
    BrowseStatus,
    DirectoryNode,
    FileRecord,
)
from peerbrowse.browse.persistence import SessionPersistence
from peerbrowse.browse.poller import ProgressPoller
from peerbrowse.browse.tree import (
    build_directory_tree,
    count_info,
    infer_separator,
    merge_locked,
)
from peerbrowse.config import get_settings

logger = logging.getLogger(__name__)

Listener = Callable[[BrowseSnapshot], None]

ESCAPE_KEY = "Escape"


class BrowseSession:
    """Owns the state of browsing one peer at a time.

    Usage:
        async with BrowseSession(UsersClient(), persistence) as session:
            session.subscribe(render)
            await session.browse("alice")
            session.select_directory(session.state.tree[0])

    ``browse()`` must not be called while a browse is already pending; the
    caller is expected to disable its trigger in that state.
    """

    def __init__(
        self,
        backend: BrowseBackend,
        persistence: SessionPersistence | None = None,
        *,
        poll_interval: float | None = None,
    ):
        self._backend = backend
        self._persistence = persistence
        if poll_interval is None:
            poll_interval = get_settings().status_poll_interval
        if poll_interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {poll_interval}")
        self._poll_interval = poll_interval
        self._state = BrowseSnapshot()
        self._generation = 0
        self._poller: ProgressPoller[BrowseStatus] | None = None
        self._listeners: list[Listener] = []

    @property
    def state(self) -> BrowseSnapshot:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def polling(self) -> bool:
        return self._poller is not None and self._poller.running

    # -- listeners --

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _commit(self, snapshot: BrowseSnapshot, *, persist: bool = True) -> None:
        self._state = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.warning("Browse state listener failed", exc_info=True)
        if persist and self._persistence is not None:
            self._persistence.save(snapshot)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state.pending

    # -- lifecycle --

    async def start(self) -> BrowseSnapshot:
        """Restore the persisted snapshot. Call once, before anything else."""
        if self._persistence is None:
            return self._state

        snapshot = self._persistence.load()
        if snapshot.pending:
            # The request that was in flight did not survive the restart
            logger.info("Previous browse of %s was interrupted", snapshot.username)
            snapshot = snapshot.model_copy(
                update={"browseState": BrowseState.IDLE, "browseStatus": 0.0}
            )
        self._commit(snapshot)
        return snapshot

    async def close(self) -> None:
        """Stop polling and wait for pending writes. Call when the view goes away."""
        poller, self._poller = self._poller, None
        if poller is not None:
            await poller.stop()
        if self._persistence is not None:
            await self._persistence.flush()

    async def __aenter__(self) -> BrowseSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # -- transitions --

    async def browse(self, username: str) -> BrowseSnapshot:
        """Request the share listing of ``username`` and wait for it.

        Returns the snapshot after the request resolved. Browse failures put
        the session in the error state; they are not raised.
        """
        username = username.strip()
        if not username:
            raise ValueError("A username is required to browse")

        self._generation += 1
        generation = self._generation
        poller: ProgressPoller[BrowseStatus] = ProgressPoller(
            lambda: self._backend.get_browse_status(username),
            lambda status: self._apply_status(generation, status),
            interval=self._poll_interval,
        )

        self._commit(
            self._state.model_copy(
                update={
                    "username": username,
                    "browseState": BrowseState.PENDING,
                    "browseStatus": 0.0,
                    "browseError": None,
                }
            ),
            persist=False,
        )
        self._poller = poller
        try:
            async with poller:
                result = await self._backend.browse(username)
        except asyncio.CancelledError:
            self._abandon(generation)
            raise
        except Exception as e:
            self._fail(generation, username, e)
        else:
            self._complete(generation, result)
        finally:
            if self._poller is poller:
                self._poller = None

        return self._state

    def _apply_status(self, generation: int, status: BrowseStatus) -> None:
        if not self._is_current(generation):
            logger.debug("Dropping stale browse status (generation %d)", generation)
            return
        self._commit(
            self._state.model_copy(update={"browseStatus": status.percentComplete}),
            persist=False,
        )

    def _complete(self, generation: int, result: BrowseResult) -> None:
        if not self._is_current(generation):
            logger.info("Discarding browse result for superseded session")
            return

        directories = result.directories
        locked_directories = result.lockedDirectories
        separator = infer_separator(directories)
        tree = build_directory_tree(merge_locked(directories, locked_directories), separator)
        info = count_info(directories, locked_directories)

        logger.info("Browse of %s complete: %s", self._state.username, info.summary())
        self._commit(
            self._state.model_copy(
                update={
                    "browseState": BrowseState.COMPLETE,
                    "browseError": None,
                    "tree": tree,
                    "separator": separator,
                    "info": info,
                }
            )
        )

    def _fail(self, generation: int, username: str, error: Exception) -> None:
        if not self._is_current(generation):
            logger.info("Discarding browse failure for superseded session: %s", error)
            return

        logger.warning("Failed to browse %s: %s", username, error)
        self._commit(
            self._state.model_copy(
                update={
                    "browseState": BrowseState.ERROR,
                    "browseError": str(error) or type(error).__name__,
                }
            )
        )

    def _abandon(self, generation: int) -> None:
        if not self._is_current(generation):
            return
        logger.info("Browse of %s was cancelled", self._state.username)
        self._commit(
            self._state.model_copy(
                update={"browseState": BrowseState.IDLE, "browseStatus": 0.0}
            )
        )

    def clear(self) -> None:
        """Reset to a fresh idle session, whatever the current state."""
        self._generation += 1
        poller, self._poller = self._poller, None
        if poller is not None:
            poller.cancel()
        self._commit(BrowseSnapshot())

    def handle_key(self, key: str) -> None:
        if key == ESCAPE_KEY:
            self.clear()

    def select_directory(self, node: DirectoryNode) -> None:
        """Show ``node`` in the detail view. Its subdirectories are not kept."""
        if self._state.empty_tree:
            logger.debug("Ignoring selection of %s: no tree loaded", node.name)
            return
        selected = node.model_copy(update={"children": []})
        self._commit(self._state.model_copy(update={"selectedDirectory": selected}))

    def deselect_directory(self) -> None:
        self._commit(self._state.model_copy(update={"selectedDirectory": None}))

    # -- derived views --

    def selected_files(self) -> list[FileRecord]:
        """Files of the selected directory, with their full path as ``filename``."""
        selected = self._state.selectedDirectory
        if selected is None:
            return []
        separator = self._state.separator or "\\"
        return [
            f.model_copy(update={"filename": f"{selected.name}{separator}{f.filename}"})
            for f in selected.files
        ]

    def failure_message(self) -> str | None:
        if self._state.browseState != BrowseState.ERROR:
            return None
        return f"Failed to browse {self._state.username}"

"""Session snapshot persistence.

Storage layout:
~/.peerbrowse/state/
    peerbrowse-browse-state.state   # one compressed snapshot per key

Design notes:
- A snapshot is the session's JSON, zlib-compressed, base64-encoded, so the
  stored value is a single plain string under a single key
- Every save overwrites the whole snapshot; a write that never happens loses
  the latest transition but never leaves a partial record behind
- Compression and the write run after the state change has been handed to
  listeners, on a worker thread
- Nothing here raises into the session: failed saves are logged, and an
  unreadable snapshot loads as a fresh idle session
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import os
import re
import stat
import tempfile
import zlib
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from peerbrowse.browse.errors import PersistenceError
from peerbrowse.browse.models import BrowseSnapshot
from peerbrowse.config import get_settings, get_state_dir

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9._-]+$")


@runtime_checkable
class KeyValueStorage(Protocol):
    """Durable client-local string storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryKeyValueStorage:
    """Dict-backed storage; lives as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class FileKeyValueStorage:
    """One file per key under ~/.peerbrowse/state/, chmod 0600."""

    def __init__(self, base_path: Path | None = None):
        self.base_path = base_path if base_path is not None else get_state_dir()

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.fullmatch(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_path / f"{key}.state"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(value)
            os.chmod(tmp_name, stat.S_IRUSR | stat.S_IWUSR)
            os.replace(tmp_name, path)
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)


def compress_text(text: str) -> str:
    return base64.b64encode(zlib.compress(text.encode("utf-8"))).decode("ascii")


def decompress_text(value: str) -> str:
    try:
        return zlib.decompress(base64.b64decode(value, validate=True)).decode("utf-8")
    except (binascii.Error, zlib.error, UnicodeDecodeError, ValueError) as e:
        raise PersistenceError(f"Cannot decompress snapshot: {e}") from e


def compress_snapshot(snapshot: BrowseSnapshot) -> str:
    return compress_text(snapshot.model_dump_json())


def decompress_snapshot(value: str) -> BrowseSnapshot:
    """Decode a stored snapshot.

    Raises:
        PersistenceError: the value is not a valid compressed snapshot.
    """
    text = decompress_text(value)
    try:
        return BrowseSnapshot.model_validate_json(text)
    except ValidationError as e:
        raise PersistenceError(f"Invalid snapshot: {e}") from e


class SessionPersistence:
    """Saves and restores a browse session's snapshot under one storage key."""

    def __init__(self, storage: KeyValueStorage, key: str | None = None):
        self.storage = storage
        self.key = key or get_settings().state_key
        self._pending: set[asyncio.Task] = set()
        self._write_lock: asyncio.Lock | None = None

    def save(self, snapshot: BrowseSnapshot) -> None:
        """Schedule a write of ``snapshot``.

        The snapshot is serialized right away; compression and the storage
        write happen later on the running loop. Outside an event loop the
        write is done immediately.
        """
        try:
            payload = snapshot.model_dump_json()
        except Exception as e:
            logger.error("Failed to serialize browse state: %s", e)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write(payload)
            return

        task = loop.create_task(self._write_deferred(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_deferred(self, payload: str) -> None:
        if self._write_lock is None:
            self._write_lock = asyncio.Lock()
        # Lock is FIFO, so writes land in the order they were saved
        async with self._write_lock:
            await asyncio.to_thread(self._write, payload)

    def _write(self, payload: str) -> None:
        try:
            self.storage.set(self.key, compress_text(payload))
        except Exception as e:
            logger.error("Failed to save browse state: %s", e)

    async def flush(self) -> None:
        """Wait for every scheduled write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def load(self) -> BrowseSnapshot:
        """Read the stored snapshot, or a fresh one if there is nothing usable."""
        try:
            value = self.storage.get(self.key)
        except Exception as e:
            logger.warning("Failed to read browse state: %s", e)
            return BrowseSnapshot()

        if not value:
            return BrowseSnapshot()

        try:
            return decompress_snapshot(value)
        except PersistenceError as e:
            logger.warning("Discarding stored browse state: %s", e)
            return BrowseSnapshot()

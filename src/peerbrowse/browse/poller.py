"""Periodic progress polling for an in-flight browse."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProgressPoller(Generic[T]):
    """Calls ``fetch`` every ``interval`` seconds and hands results to ``on_status``.

    The poll task lives exactly as long as the ``async with`` block:

        async with ProgressPoller(fetch, on_status, interval=0.5):
            await slow_request()

    Fetch errors are logged and polling carries on; whether a result is
    still wanted is for ``on_status`` to decide.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        on_status: Callable[[T], None],
        interval: float = 0.5,
    ):
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}")
        self.interval = interval
        self._fetch = fetch
        self._on_status = on_status
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._poll_loop())

    def cancel(self) -> None:
        """Request the poll task to stop without waiting for it."""
        if self._task and not self._task.done():
            self._task.cancel()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                status = await self._fetch()
                self._on_status(status)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.debug("Progress poll failed: %s", e)

    async def __aenter__(self) -> ProgressPoller[T]:
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

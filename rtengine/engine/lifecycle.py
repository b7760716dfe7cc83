"""Engine lifecycle: shared shutdown signal and the reader/writer tasks."""

from __future__ import annotations

import asyncio
import logging
import contextlib
from typing import Any
from collections.abc import Awaitable, Coroutine

logger = logging.getLogger(__name__)


class EngineLifecycle:
    """Owns the shutdown event every wait in the engine races against."""

    def __init__(self) -> None:
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def start(self, *coros: Coroutine[Any, Any, None]) -> list[asyncio.Task]:
        for coro in coros:
            self._tasks.append(asyncio.create_task(coro))
        return list(self._tasks)

    def signal_stop(self) -> None:
        self._stop_event.set()

    async def wait_stopped(self) -> None:
        await self._stop_event.wait()

    async def run_until_stopped(self, aw: Awaitable[Any]) -> tuple[bool, Any]:
        """Await `aw` unless shutdown wins the race.

        Returns (True, result) when `aw` finished, (False, None) when the stop
        signal fired first. The loser is cancelled either way.
        """
        task = asyncio.ensure_future(aw)
        stopper: asyncio.Future | None = None
        try:
            if not task.done() and not self._stop_event.is_set():
                stopper = asyncio.ensure_future(self._stop_event.wait())
                await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if stopper is not None:
                stopper.cancel()
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await task
        if task.cancelled():
            return False, None
        return True, task.result()

    async def stop(self) -> None:
        self._stop_event.set()
        current = asyncio.current_task()
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            if task is not current:
                task.cancel()
        for task in tasks:
            if task is current:
                continue
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task


__all__ = ["EngineLifecycle"]

"""Send half of a split engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rtengine.state import EngineState
from rtengine.protocol.client_events import ClientEvent

from .intents import IntentsMixin

if TYPE_CHECKING:
    from .engine import RealtimeEngine


class EngineSender(IntentsMixin):
    """Submits intents on behalf of a shared engine; usable from any task."""

    def __init__(self, engine: RealtimeEngine) -> None:
        self._engine = engine

    @property
    def state(self) -> EngineState:  # type: ignore[override]
        return self._engine.state

    @property
    def closed(self) -> bool:
        return self._engine.closed

    def _ensure_open(self) -> None:
        self._engine._ensure_open()

    async def _submit(self, event: ClientEvent, *, wait_sent: bool = False) -> str:
        return await self._engine._submit(event, wait_sent=wait_sent)

    async def close(self) -> None:
        await self._engine.close()


__all__ = ["EngineSender"]

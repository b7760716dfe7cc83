"""Receive half of a split engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from collections.abc import AsyncIterator

from rtengine.state import EngineState

from .voice import VoiceEvent, AudioChunk, TranscriptChunk

if TYPE_CHECKING:
    from .engine import RealtimeEngine


class EngineReceiver:
    """Consumes applied server events from a shared engine."""

    def __init__(self, engine: RealtimeEngine) -> None:
        self._engine = engine

    @property
    def state(self) -> EngineState:
        return self._engine.state

    @property
    def closed(self) -> bool:
        return self._engine.closed

    async def next_event(self) -> Any:
        return await self._engine.next_event()

    async def next_text(self) -> str | None:
        return await self._engine.next_text()

    async def next_voice_event(self) -> VoiceEvent | None:
        return await self._engine.next_voice_event()

    async def next_audio_chunk(self) -> AudioChunk | None:
        return await self._engine.next_audio_chunk()

    async def next_transcript(self) -> TranscriptChunk | None:
        return await self._engine.next_transcript()

    def voice_events(self) -> AsyncIterator[VoiceEvent]:
        return self._engine.voice_events()

    def __aiter__(self) -> EngineReceiver:
        return self

    async def __anext__(self) -> Any:
        event = await self._engine.next_event()
        if event is None:
            raise StopAsyncIteration
        return event

    async def close(self) -> None:
        await self._engine.close()


__all__ = ["EngineReceiver"]

"""The four state owners bundled for the engine's reader."""

from __future__ import annotations

from dataclasses import field, dataclass

from rtengine.config.engine import FINISHED_RESPONSES_MAX
from rtengine.config.audio import MAX_INPUT_AUDIO_CHUNK_BYTES

from .audio import AudioPipeline
from .session import SessionState
from .responses import ResponseTracker
from .conversation import ConversationStore


@dataclass(slots=True)
class EngineState:
    session: SessionState = field(default_factory=SessionState)
    conversation: ConversationStore = field(default_factory=ConversationStore)
    audio: AudioPipeline = field(default_factory=AudioPipeline)
    responses: ResponseTracker = field(default_factory=ResponseTracker)

    @classmethod
    def create(
        cls,
        *,
        max_chunk_bytes: int = MAX_INPUT_AUDIO_CHUNK_BYTES,
        finished_responses_max: int = FINISHED_RESPONSES_MAX,
    ) -> EngineState:
        return cls(
            audio=AudioPipeline(max_chunk_bytes=max_chunk_bytes),
            responses=ResponseTracker(finished_max=finished_responses_max),
        )

    def freeze(self) -> None:
        """Make every owner read-only; mutators raise ConnectionClosed afterwards."""
        self.session.freeze()
        self.conversation.freeze()
        self.audio.freeze()
        self.responses.freeze()


__all__ = ["EngineState"]

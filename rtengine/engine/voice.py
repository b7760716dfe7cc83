"""Voice-oriented views derived from server events."""

from __future__ import annotations

from dataclasses import dataclass

VOICE_SPEECH_STARTED = "speech_started"
VOICE_SPEECH_STOPPED = "speech_stopped"
VOICE_AUDIO_DELTA = "audio_delta"
VOICE_AUDIO_DONE = "audio_done"
VOICE_TRANSCRIPT_DELTA = "transcript_delta"
VOICE_TRANSCRIPT_DONE = "transcript_done"
VOICE_USER_TRANSCRIPT_DONE = "user_transcript_done"
VOICE_RESPONSE_CREATED = "response_created"
VOICE_RESPONSE_DONE = "response_done"
VOICE_RESPONSE_CANCELLED = "response_cancelled"
VOICE_DECODE_ERROR = "decode_error"


@dataclass(frozen=True, slots=True)
class VoiceEvent:
    """One step of a voice turn; only the fields relevant to `kind` are set."""

    kind: str
    response_id: str | None = None
    item_id: str | None = None
    output_index: int | None = None
    content_index: int | None = None
    audio_start_ms: int | None = None
    audio_end_ms: int | None = None
    pcm: bytes | None = None
    text: str | None = None
    message: str | None = None


@dataclass(frozen=True, slots=True)
class AudioChunk:
    response_id: str
    item_id: str
    output_index: int
    content_index: int
    pcm: bytes


@dataclass(frozen=True, slots=True)
class TranscriptChunk:
    response_id: str
    item_id: str
    output_index: int
    content_index: int
    text: str
    is_final: bool


__all__ = [
    "AudioChunk",
    "TranscriptChunk",
    "VOICE_AUDIO_DELTA",
    "VOICE_AUDIO_DONE",
    "VOICE_DECODE_ERROR",
    "VOICE_RESPONSE_CANCELLED",
    "VOICE_RESPONSE_CREATED",
    "VOICE_RESPONSE_DONE",
    "VOICE_SPEECH_STARTED",
    "VOICE_SPEECH_STOPPED",
    "VOICE_TRANSCRIPT_DELTA",
    "VOICE_TRANSCRIPT_DONE",
    "VOICE_USER_TRANSCRIPT_DONE",
    "VoiceEvent",
]

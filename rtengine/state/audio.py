"""Audio state owner: input buffer accounting, VAD sub-state and output audio tracking."""

from __future__ import annotations

import logging
from typing import Any
from dataclasses import dataclass

from rtengine.config.audio import MAX_INPUT_AUDIO_CHUNK_BYTES
from rtengine.errors import ChunkTooLarge, InvalidIntent, ConnectionClosed, EmptyBufferCommit
from rtengine.protocol.validation import audio_bytes_per_ms, estimate_b64_decoded_bytes
from rtengine.protocol.client_events import (
    ResponseCancel,
    new_event_id,
    InputAudioBufferClear,
    InputAudioBufferAppend,
    InputAudioBufferCommit,
    OutputAudioBufferClear,
)

logger = logging.getLogger(__name__)

VAD_IDLE = "idle"
VAD_BUFFERING = "buffering"
VAD_SPEECH_DETECTED = "speech_detected"

OUTPUT_STARTED = "started"
OUTPUT_STOPPED = "stopped"
OUTPUT_CLEARED = "cleared"


@dataclass(slots=True)
class _PendingCommit:
    event_id: str
    size_bytes: int
    duration_ms: float


class AudioPipeline:
    """Tracks what the client has written to the input buffer.

    Appends are never acknowledged by the server, so buffer accounting moves at
    submission time. Everything else follows server events.
    """

    def __init__(self, *, max_chunk_bytes: int = MAX_INPUT_AUDIO_CHUNK_BYTES) -> None:
        self._max_chunk_bytes = int(max_chunk_bytes)
        self._buffered_bytes = 0
        self._buffered_ms = 0.0
        self._written_ms = 0.0
        self._vad_state = VAD_IDLE
        self._speech_item_id: str | None = None
        self._committed_item_ids: list[str] = []
        self._pending_commits: list[_PendingCommit] = []
        self._output: dict[str, str] = {}
        self._frozen = False

    @property
    def buffered_bytes(self) -> int:
        return self._buffered_bytes

    @property
    def buffered_ms(self) -> float:
        return self._buffered_ms

    @property
    def written_ms(self) -> float:
        return self._written_ms

    @property
    def vad_state(self) -> str:
        return self._vad_state

    @property
    def speech_item_id(self) -> str | None:
        return self._speech_item_id

    @property
    def committed_item_ids(self) -> list[str]:
        return list(self._committed_item_ids)

    @property
    def output_states(self) -> dict[str, str]:
        return dict(self._output)

    @property
    def output_audio_active(self) -> bool:
        return any(state == OUTPUT_STARTED for state in self._output.values())

    def freeze(self) -> None:
        self._frozen = True

    def _check_open(self) -> None:
        if self._frozen:
            raise ConnectionClosed()

    def _reset_buffer(self) -> None:
        self._buffered_bytes = 0
        self._buffered_ms = 0.0

    # --- client intents --------------------------------------------------

    def append(self, audio: str, *, audio_format: Any = None) -> InputAudioBufferAppend:
        """Account for one base64 chunk and build its append intent.

        The buffer is left untouched when the chunk is rejected.
        """
        self._check_open()
        if not isinstance(audio, str) or not audio:
            raise InvalidIntent("input_audio_buffer.append", "audio must be a non-empty base64 string")
        size = estimate_b64_decoded_bytes(audio)
        if size > self._max_chunk_bytes:
            raise ChunkTooLarge(size, self._max_chunk_bytes)

        ms = size / audio_bytes_per_ms(audio_format)
        self._buffered_bytes += size
        self._buffered_ms += ms
        self._written_ms += ms
        if self._vad_state == VAD_IDLE:
            self._vad_state = VAD_BUFFERING
        return InputAudioBufferAppend(audio=audio)

    def commit(self, *, event_id: str | None = None) -> InputAudioBufferCommit:
        """Build a commit intent; the buffer resets now and is restored if the server rejects it."""
        self._check_open()
        if self._buffered_bytes == 0:
            raise EmptyBufferCommit()
        event_id = event_id or new_event_id()
        self._pending_commits.append(_PendingCommit(event_id, self._buffered_bytes, self._buffered_ms))
        self._reset_buffer()
        self._vad_state = VAD_IDLE
        return InputAudioBufferCommit(event_id=event_id)

    def release_commit(self, event_id: str) -> None:
        """Forget a commit the server rejected or that never reached the wire."""
        for idx, pending in enumerate(self._pending_commits):
            if pending.event_id == event_id:
                del self._pending_commits[idx]
                self._buffered_bytes += pending.size_bytes
                self._buffered_ms += pending.duration_ms
                return

    def clear(self) -> InputAudioBufferClear:
        self._check_open()
        self._reset_buffer()
        self._vad_state = VAD_IDLE
        return InputAudioBufferClear()

    def barge_in(self, response_id: str | None = None) -> tuple[ResponseCancel, OutputAudioBufferClear]:
        """Intents that stop the current reply: cancel first, then flush playback."""
        self._check_open()
        return ResponseCancel(response_id=response_id), OutputAudioBufferClear()

    # --- server events ---------------------------------------------------

    def on_committed(self, item_id: str) -> None:
        self._check_open()
        if self._pending_commits:
            # Our own commit; the buffer was already reset when it was submitted.
            self._pending_commits.pop(0)
        else:
            self._reset_buffer()
        if item_id:
            self._committed_item_ids.append(item_id)
        if self._vad_state == VAD_BUFFERING:
            self._vad_state = VAD_IDLE

    def on_cleared(self) -> None:
        self._check_open()
        self._reset_buffer()
        self._vad_state = VAD_IDLE

    def on_speech_started(self, item_id: str) -> None:
        self._check_open()
        self._vad_state = VAD_SPEECH_DETECTED
        self._speech_item_id = item_id or None

    def on_speech_stopped(self, item_id: str) -> None:
        self._check_open()
        self._vad_state = VAD_IDLE

    def on_timeout_triggered(self, item_id: str) -> None:
        """Idle timeout: the server commits the segment itself, even when empty."""
        self._check_open()
        self._reset_buffer()
        self._vad_state = VAD_IDLE
        logger.debug("input audio idle timeout; server committed item %s", item_id or "<none>")

    def on_output_started(self, response_id: str) -> None:
        self._check_open()
        self._output[response_id] = OUTPUT_STARTED

    def on_output_stopped(self, response_id: str) -> None:
        self._check_open()
        self._output[response_id] = OUTPUT_STOPPED

    def on_output_cleared(self, response_id: str) -> None:
        self._check_open()
        if response_id:
            self._output[response_id] = OUTPUT_CLEARED
            return
        # A clear without a response id flushes whatever was playing.
        for key, state in self._output.items():
            if state == OUTPUT_STARTED:
                self._output[key] = OUTPUT_CLEARED


__all__ = [
    "AudioPipeline",
    "OUTPUT_CLEARED",
    "OUTPUT_STARTED",
    "OUTPUT_STOPPED",
    "VAD_BUFFERING",
    "VAD_IDLE",
    "VAD_SPEECH_DETECTED",
]

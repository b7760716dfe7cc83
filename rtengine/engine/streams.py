"""Derived consumer streams: finished texts, voice events, audio chunks and transcripts."""

from __future__ import annotations

import asyncio
import base64
import logging
import binascii
import contextlib
from typing import Any

from rtengine.protocol import server_events as ev
from rtengine.config.engine import DERIVED_STREAM_MAX
from rtengine.config.protocol import RESPONSE_CANCELLED

from .voice import (
    VoiceEvent,
    AudioChunk,
    TranscriptChunk,
    VOICE_AUDIO_DONE,
    VOICE_AUDIO_DELTA,
    VOICE_DECODE_ERROR,
    VOICE_RESPONSE_DONE,
    VOICE_SPEECH_STARTED,
    VOICE_SPEECH_STOPPED,
    VOICE_TRANSCRIPT_DONE,
    VOICE_RESPONSE_CREATED,
    VOICE_TRANSCRIPT_DELTA,
    VOICE_RESPONSE_CANCELLED,
    VOICE_USER_TRANSCRIPT_DONE,
)

logger = logging.getLogger(__name__)


class DerivedStreams:
    """Fan applied server events out into four bounded, independent queues.

    The full event stream stays lossless. These views drop their oldest entry
    when nobody drains them so an unread view never stalls the reader.
    """

    def __init__(self, *, maxsize: int = DERIVED_STREAM_MAX) -> None:
        size = max(1, int(maxsize))
        self.text: asyncio.Queue[str] = asyncio.Queue(maxsize=size)
        self.voice: asyncio.Queue[VoiceEvent] = asyncio.Queue(maxsize=size)
        self.audio: asyncio.Queue[AudioChunk] = asyncio.Queue(maxsize=size)
        self.transcripts: asyncio.Queue[TranscriptChunk] = asyncio.Queue(maxsize=size)
        self.dropped = 0

    def _offer(self, queue: asyncio.Queue, item: Any) -> None:
        if queue.full():
            with contextlib.suppress(asyncio.QueueEmpty):
                queue.get_nowait()
                self.dropped += 1
                logger.debug("derived stream full; dropped oldest %s", type(item).__name__)
        queue.put_nowait(item)

    def feed(self, event: Any) -> None:
        if isinstance(event, ev.ResponseOutputTextDone):
            self._offer(self.text, event.text)
        elif isinstance(event, ev.ResponseCreated):
            self._offer(self.voice, VoiceEvent(VOICE_RESPONSE_CREATED, response_id=event.response.id))
        elif isinstance(event, ev.ResponseDone):
            cancelled = event.response.status == RESPONSE_CANCELLED
            kind = VOICE_RESPONSE_CANCELLED if cancelled else VOICE_RESPONSE_DONE
            self._offer(self.voice, VoiceEvent(kind, response_id=event.response.id))
        elif isinstance(event, ev.InputAudioBufferSpeechStarted):
            self._offer(self.voice, VoiceEvent(VOICE_SPEECH_STARTED, audio_start_ms=event.audio_start_ms))
        elif isinstance(event, ev.InputAudioBufferSpeechStopped):
            self._offer(self.voice, VoiceEvent(VOICE_SPEECH_STOPPED, audio_end_ms=event.audio_end_ms))
        elif isinstance(event, ev.ResponseOutputAudioDelta):
            self._feed_audio(event)
        elif isinstance(event, ev.ResponseOutputAudioDone):
            self._offer(self.voice, VoiceEvent(VOICE_AUDIO_DONE, **_position(event)))
        elif isinstance(event, ev.ResponseOutputAudioTranscriptDelta):
            self._feed_transcript(event, event.delta, is_final=False)
        elif isinstance(event, ev.ResponseOutputAudioTranscriptDone):
            self._feed_transcript(event, event.transcript, is_final=True)
        elif isinstance(event, ev.InputAudioTranscriptionCompleted):
            voice = VoiceEvent(
                VOICE_USER_TRANSCRIPT_DONE,
                item_id=event.item_id,
                content_index=event.content_index,
                text=event.transcript,
            )
            self._offer(self.voice, voice)

    def _feed_audio(self, event: ev.ResponseOutputAudioDelta) -> None:
        try:
            pcm = base64.b64decode(event.delta, validate=True)
        except (binascii.Error, ValueError) as exc:
            self._offer(self.voice, VoiceEvent(VOICE_DECODE_ERROR, message=str(exc)))
            return
        self._offer(self.voice, VoiceEvent(VOICE_AUDIO_DELTA, pcm=pcm, **_position(event)))
        self._offer(self.audio, AudioChunk(pcm=pcm, **_position(event)))

    def _feed_transcript(self, event: Any, text: str, *, is_final: bool) -> None:
        kind = VOICE_TRANSCRIPT_DONE if is_final else VOICE_TRANSCRIPT_DELTA
        self._offer(self.voice, VoiceEvent(kind, text=text, **_position(event)))
        self._offer(self.transcripts, TranscriptChunk(text=text, is_final=is_final, **_position(event)))


def _position(event: Any) -> dict[str, Any]:
    return {
        "response_id": event.response_id,
        "item_id": event.item_id,
        "output_index": event.output_index,
        "content_index": event.content_index,
    }


__all__ = ["DerivedStreams"]

from __future__ import annotations

import base64

import pytest

from rtengine.errors import ChunkTooLarge, InvalidIntent, EmptyBufferCommit
from rtengine.protocol.client_events import ResponseCancel, OutputAudioBufferClear
from rtengine.state.audio import (
    VAD_IDLE,
    OUTPUT_CLEARED,
    OUTPUT_STARTED,
    VAD_BUFFERING,
    VAD_SPEECH_DETECTED,
    AudioPipeline,
)


def _pcm(n_bytes: int) -> str:
    return base64.b64encode(b"\x00" * n_bytes).decode("ascii")


def test_append_accounts_duration_at_24k() -> None:
    audio = AudioPipeline()
    audio.append(_pcm(4800))
    assert audio.buffered_bytes == 4800
    assert audio.buffered_ms == pytest.approx(100.0)
    assert audio.vad_state == VAD_BUFFERING


def test_append_uses_session_format() -> None:
    audio = AudioPipeline()
    audio.append(_pcm(800), audio_format={"type": "audio/pcmu"})
    assert audio.buffered_ms == pytest.approx(100.0)


def test_oversized_chunk_leaves_buffer_unchanged() -> None:
    audio = AudioPipeline(max_chunk_bytes=1000)
    audio.append(_pcm(999))
    with pytest.raises(ChunkTooLarge) as exc:
        audio.append(_pcm(1002))
    assert exc.value.size == 1002
    assert exc.value.limit == 1000
    assert audio.buffered_bytes == 999


def test_append_rejects_empty_or_malformed() -> None:
    audio = AudioPipeline()
    with pytest.raises(InvalidIntent):
        audio.append("")
    with pytest.raises(InvalidIntent):
        audio.append("not base64!")
    assert audio.buffered_bytes == 0


def test_commit_requires_audio() -> None:
    audio = AudioPipeline()
    with pytest.raises(EmptyBufferCommit):
        audio.commit()
    audio.append(_pcm(96))
    audio.commit()
    assert audio.buffered_bytes == 0
    assert audio.vad_state == VAD_IDLE


def test_own_commit_ack_keeps_newer_audio() -> None:
    audio = AudioPipeline()
    audio.append(_pcm(96))
    audio.commit()
    audio.append(_pcm(48))
    audio.on_committed("item_1")
    assert audio.buffered_bytes == 48
    assert audio.committed_item_ids == ["item_1"]


def test_rejected_commit_restores_buffer_and_stops_waiting() -> None:
    audio = AudioPipeline()
    audio.append(_pcm(960))
    intent = audio.commit()
    assert intent.event_id
    assert audio.buffered_bytes == 0

    audio.release_commit(intent.event_id)
    assert audio.buffered_bytes == 960
    audio.append(_pcm(960))
    # Nothing of ours is in flight, so this is a VAD commit of everything buffered.
    audio.on_committed("item_vad")
    assert audio.buffered_bytes == 0
    with pytest.raises(EmptyBufferCommit):
        audio.commit()


def test_release_of_unknown_commit_is_ignored() -> None:
    audio = AudioPipeline()
    audio.append(_pcm(96))
    audio.commit(event_id="evt_a")
    audio.release_commit("evt_other")
    audio.append(_pcm(48))
    audio.on_committed("item_1")
    assert audio.buffered_bytes == 48


def test_vad_commit_resets_buffer() -> None:
    audio = AudioPipeline()
    audio.append(_pcm(96))
    audio.on_speech_started("item_1")
    assert audio.vad_state == VAD_SPEECH_DETECTED
    assert audio.speech_item_id == "item_1"
    audio.on_speech_stopped("item_1")
    audio.on_committed("item_1")
    assert audio.buffered_bytes == 0
    assert audio.vad_state == VAD_IDLE


def test_timeout_commit_accepts_empty_buffer() -> None:
    audio = AudioPipeline()
    audio.on_timeout_triggered("item_2")
    audio.on_committed("item_2")
    assert audio.committed_item_ids == ["item_2"]


def test_output_buffer_tracking() -> None:
    audio = AudioPipeline()
    audio.on_output_started("resp_1")
    assert audio.output_audio_active
    audio.on_output_cleared("")
    assert audio.output_states == {"resp_1": OUTPUT_CLEARED}
    assert not audio.output_audio_active
    audio.on_output_started("resp_2")
    assert audio.output_states["resp_2"] == OUTPUT_STARTED


def test_barge_in_orders_cancel_before_clear() -> None:
    cancel, clear = AudioPipeline().barge_in("resp_1")
    assert isinstance(cancel, ResponseCancel)
    assert cancel.response_id == "resp_1"
    assert isinstance(clear, OutputAudioBufferClear)

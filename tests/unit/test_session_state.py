from __future__ import annotations

import pytest

from rtengine.state.session import SessionState
from rtengine.protocol.session import Session
from rtengine.errors import VoiceLocked, InvalidIntent, ConnectionClosed, ImmutableFieldChange


def _state(**session: object) -> SessionState:
    state = SessionState()
    body = {"id": "sess_1", "model": "gpt-realtime", "voice": "alloy", **session}
    state.apply_server_snapshot(Session.from_dict(body), created=True)
    return state


def test_voice_change_allowed_before_audio() -> None:
    state = _state()
    update = state.request_update({"voice": "marin"})
    assert update.session == {"voice": "marin"}


def test_voice_locked_after_audio() -> None:
    state = _state()
    state.mark_audio_emitted()
    with pytest.raises(VoiceLocked) as exc:
        state.request_update({"audio": {"output": {"voice": "marin"}}})
    assert exc.value.current == "alloy"
    # Other fields stay mutable.
    state.request_update({"instructions": "be brief"})


def test_model_is_immutable() -> None:
    state = _state()
    state.request_update({"model": "gpt-realtime"})
    with pytest.raises(ImmutableFieldChange) as exc:
        state.request_update({"model": "other-model"})
    assert exc.value.field == "model"
    assert exc.value.current == "gpt-realtime"


def test_model_free_before_session_known() -> None:
    SessionState().request_update({"model": "anything"})


def test_request_does_not_touch_mirror() -> None:
    state = _state(instructions="old")
    state.request_update({"instructions": "new"})
    assert state.session is not None
    assert state.session.instructions == "old"


def test_non_object_update_rejected() -> None:
    with pytest.raises(InvalidIntent):
        SessionState().request_update(["voice"])  # type: ignore[arg-type]


def test_preview_clearing_rules() -> None:
    state = _state(
        instructions="old",
        tools=[{"type": "function", "name": "f"}],
        turn_detection={"type": "server_vad"},
        temperature=0.7,
    )
    preview = state.preview_update({"instructions": "", "tools": [], "turn_detection": None})
    assert preview.instructions is None
    assert preview.tools == []
    assert preview.turn_detection is None
    assert preview.temperature == 0.7
    assert preview.voice == "alloy"


def test_snapshot_keeps_created_model() -> None:
    state = _state()
    state.apply_server_snapshot(Session.from_dict({"model": "drifted"}))
    assert state.model == "gpt-realtime"


def test_frozen_rejects_updates() -> None:
    state = _state()
    state.freeze()
    with pytest.raises(ConnectionClosed):
        state.request_update({"instructions": "x"})


def test_vad_flags_default_true() -> None:
    session = Session.from_dict({"turn_detection": {"type": "semantic_vad"}})
    assert session.vad_interrupt_response
    assert session.vad_create_response
    assert not Session.from_dict({"turn_detection": None}).vad_interrupt_response

from __future__ import annotations

import orjson
import pytest

from rtengine.errors import UnknownEventType
from rtengine.protocol import server_events as ev
from rtengine.protocol.items import MessageItem
from rtengine.protocol.content import input_text
from rtengine.protocol.not_fetched import NOT_FETCHED
from rtengine.protocol.parser import parse_server_message
from rtengine.protocol.client_events import ResponseCancel, ConversationItemCreate, InputAudioBufferCommit
from rtengine.protocol.codec import truncate_for_log, event_from_dict, decode_server_event, encode_client_event


def test_parse_rejects_non_json() -> None:
    with pytest.raises(ValueError):
        parse_server_message("{not json")


def test_parse_rejects_non_object_and_missing_type() -> None:
    with pytest.raises(ValueError):
        parse_server_message("[1, 2]")
    with pytest.raises(ValueError):
        parse_server_message('{"event_id": "x"}')
    with pytest.raises(ValueError):
        parse_server_message('{"type": "   "}')


def test_parse_strips_type() -> None:
    assert parse_server_message('{"type": " error "}')["type"] == "error"


def test_decode_session_created_flattens_nested_audio() -> None:
    raw = orjson.dumps(
        {
            "type": "session.created",
            "event_id": "ev_1",
            "session": {
                "id": "sess_1",
                "model": "gpt-realtime",
                "audio": {"output": {"voice": "marin", "format": {"type": "audio/pcm", "rate": 24000}}},
            },
        }
    )
    event = decode_server_event(raw)
    assert isinstance(event, ev.SessionCreated)
    assert event.session.voice == "marin"
    assert event.session.output_audio_format == {"type": "audio/pcm", "rate": 24000}


def test_decode_item_added_keeps_previous_id_and_content() -> None:
    event = decode_server_event(
        orjson.dumps(
            {
                "type": "conversation.item.added",
                "previous_item_id": "item_0",
                "item": {
                    "id": "item_1",
                    "type": "message",
                    "role": "assistant",
                    "content": [{"type": "output_audio", "transcript": "hello"}],
                },
            }
        )
    )
    assert isinstance(event, ev.ConversationItemAdded)
    assert event.previous_item_id == "item_0"
    assert isinstance(event.item, MessageItem)
    part = event.item.content[0]
    assert part.transcript == "hello"
    assert part.audio is NOT_FETCHED


def test_decode_error_event_maps_to_exception() -> None:
    event = decode_server_event(
        '{"type": "error", "error": {"type": "invalid_request_error", "code": "item_not_found", "param": "item_9"}}'
    )
    assert isinstance(event, ev.ErrorEvent)
    exc = event.exception()
    assert type(exc).__name__ == "ItemNotFound"
    assert exc.item_id == "item_9"

    other = decode_server_event('{"type": "error", "error": {"message": "boom"}}')
    assert type(other.exception()).__name__ == "ServerReported"


def test_decode_rate_limits() -> None:
    event = decode_server_event(
        '{"type": "rate_limits.updated", "rate_limits": [{"name": "tokens", "limit": 100, "remaining": 40}]}'
    )
    assert isinstance(event, ev.RateLimitsUpdated)
    assert event.rate_limits[0].name == "tokens"
    assert event.rate_limits[0].remaining == 40


def test_unknown_event_type_is_reported() -> None:
    with pytest.raises(UnknownEventType) as exc:
        event_from_dict({"type": "response.something_new"})
    assert exc.value.event_type == "response.something_new"


def test_unknown_fields_are_ignored() -> None:
    event = event_from_dict({"type": "input_audio_buffer.cleared", "event_id": "e", "future_field": 1})
    assert isinstance(event, ev.InputAudioBufferCleared)


def test_encode_omits_unset_optionals() -> None:
    assert orjson.loads(encode_client_event(InputAudioBufferCommit())) == {"type": "input_audio_buffer.commit"}
    assert orjson.loads(encode_client_event(ResponseCancel(event_id="e1"))) == {
        "type": "response.cancel",
        "event_id": "e1",
    }


def test_encode_item_create() -> None:
    event = ConversationItemCreate(item=MessageItem(role="user", content=[input_text("hi")]), previous_item_id="root")
    wire = orjson.loads(encode_client_event(event))
    assert wire["type"] == "conversation.item.create"
    assert wire["previous_item_id"] == "root"
    assert wire["item"] == {"type": "message", "role": "user", "content": [{"type": "input_text", "text": "hi"}]}


def test_truncate_for_log() -> None:
    assert truncate_for_log("short", limit=10) == "short"
    clipped = truncate_for_log("x" * 50, limit=10)
    assert clipped.startswith("x" * 10)
    assert clipped.endswith("50 bytes")

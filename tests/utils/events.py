"""Builders for server event payloads as they appear on the wire."""

from __future__ import annotations

import base64
from typing import Any


def pcm_b64(n_bytes: int) -> str:
    return base64.b64encode(b"\x01\x02" * (n_bytes // 2)).decode("ascii")


def session_created(**session: Any) -> dict[str, Any]:
    body = {"id": "sess_1", "model": "gpt-realtime", "voice": "alloy", **session}
    return {"type": "session.created", "event_id": "ev_s1", "session": body}


def session_updated(**session: Any) -> dict[str, Any]:
    body = {"id": "sess_1", "model": "gpt-realtime", **session}
    return {"type": "session.updated", "event_id": "ev_s2", "session": body}


def user_message(item_id: str, text: str = "hi") -> dict[str, Any]:
    return {
        "id": item_id,
        "type": "message",
        "role": "user",
        "status": "completed",
        "content": [{"type": "input_text", "text": text}],
    }


def assistant_message(item_id: str, *, audio: bool = False, status: str = "in_progress") -> dict[str, Any]:
    content = [{"type": "output_audio", "transcript": ""}] if audio else []
    return {"id": item_id, "type": "message", "role": "assistant", "status": status, "content": content}


def item_added(item: dict[str, Any], previous_item_id: str | None = None) -> dict[str, Any]:
    return {
        "type": "conversation.item.added",
        "event_id": f"ev_add_{item['id']}",
        "previous_item_id": previous_item_id,
        "item": item,
    }


def item_done(item: dict[str, Any], previous_item_id: str | None = None) -> dict[str, Any]:
    return {
        "type": "conversation.item.done",
        "event_id": f"ev_done_{item['id']}",
        "previous_item_id": previous_item_id,
        "item": item,
    }


def response_created(response_id: str, *, conversation_id: str | None = "conv_1") -> dict[str, Any]:
    return {
        "type": "response.created",
        "event_id": f"ev_rc_{response_id}",
        "response": {
            "id": response_id,
            "object": "realtime.response",
            "status": "in_progress",
            "conversation_id": conversation_id,
            "output": [],
        },
    }


def response_done(
    response_id: str, *, status: str = "completed", conversation_id: str | None = "conv_1"
) -> dict[str, Any]:
    return {
        "type": "response.done",
        "event_id": f"ev_rd_{response_id}",
        "response": {
            "id": response_id,
            "object": "realtime.response",
            "status": status,
            "conversation_id": conversation_id,
            "output": [],
            "usage": {"total_tokens": 12, "input_tokens": 5, "output_tokens": 7},
        },
    }


def text_delta(response_id: str, item_id: str, delta: str) -> dict[str, Any]:
    return {
        "type": "response.output_text.delta",
        "event_id": "ev_td",
        "response_id": response_id,
        "item_id": item_id,
        "output_index": 0,
        "content_index": 0,
        "delta": delta,
    }


def text_done(response_id: str, item_id: str, text: str) -> dict[str, Any]:
    return {
        "type": "response.output_text.done",
        "event_id": "ev_tdone",
        "response_id": response_id,
        "item_id": item_id,
        "output_index": 0,
        "content_index": 0,
        "text": text,
    }


def audio_delta(response_id: str, item_id: str, n_bytes: int) -> dict[str, Any]:
    return {
        "type": "response.output_audio.delta",
        "event_id": "ev_ad",
        "response_id": response_id,
        "item_id": item_id,
        "output_index": 0,
        "content_index": 0,
        "delta": pcm_b64(n_bytes),
    }


def output_item(kind: str, response_id: str, item: dict[str, Any]) -> dict[str, Any]:
    return {"type": f"response.output_item.{kind}", "response_id": response_id, "output_index": 0, "item": item}


def content_part(kind: str, response_id: str, item_id: str, part: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": f"response.content_part.{kind}",
        "response_id": response_id,
        "item_id": item_id,
        "output_index": 0,
        "content_index": 0,
        "part": part,
    }


def server_error(message: str, *, code: str | None = None, event_id: str | None = None) -> dict[str, Any]:
    return {
        "type": "error",
        "event_id": "ev_err",
        "error": {"type": "invalid_request_error", "code": code, "message": message, "event_id": event_id},
    }


__all__ = [
    "assistant_message",
    "audio_delta",
    "content_part",
    "item_added",
    "item_done",
    "output_item",
    "pcm_b64",
    "response_created",
    "response_done",
    "server_error",
    "session_created",
    "session_updated",
    "text_delta",
    "text_done",
    "user_message",
]

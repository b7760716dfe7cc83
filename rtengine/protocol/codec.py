"""Event codec: client intents to wire text, wire text to server events."""

from __future__ import annotations

from typing import Any
from collections.abc import Callable
from dataclasses import fields

import orjson

from rtengine.errors import UnknownEventType
from rtengine.config.logging import TRACE_LOG_MAX_BYTES, TRACE_TRUNCATE_SUFFIX

from .session import Session
from .content import ContentPart
from .items import item_from_dict
from .parser import parse_server_message
from .server_events import SERVER_EVENT_TYPES, ServerEvent
from .client_events import ClientEvent, client_event_to_dict
from .response import Usage, Response, RateLimit, ServerError


def _decode_rate_limits(value: Any) -> list[RateLimit]:
    if not isinstance(value, list):
        raise ValueError("rate_limits must be a list")
    return [RateLimit.from_dict(entry) for entry in value if isinstance(entry, dict)]


def _decode_optional_item(value: Any) -> Any:
    return None if value is None else item_from_dict(value)


def _decode_optional_part(value: Any) -> Any:
    return None if value is None else ContentPart.from_dict(value)


# Nested payloads keyed by field name; the same name means the same shape in every event.
_FIELD_DECODERS: dict[str, Callable[[Any], Any]] = {
    "session": lambda value: Session.from_dict(value or {}),
    "item": _decode_optional_item,
    "part": _decode_optional_part,
    "response": Response.from_dict,
    "error": ServerError.from_dict,
    "usage": Usage.from_dict,
    "rate_limits": _decode_rate_limits,
}


def encode_client_event(event: ClientEvent) -> str:
    return orjson.dumps(client_event_to_dict(event)).decode("utf-8")


def event_from_dict(msg: dict[str, Any]) -> ServerEvent:
    """Build the typed server event for an already parsed wire object.

    Raises UnknownEventType for a tag outside the catalog and ValueError when a
    nested payload is malformed.
    """
    msg_type = msg.get("type")
    cls = SERVER_EVENT_TYPES.get(msg_type) if isinstance(msg_type, str) else None
    if cls is None:
        raise UnknownEventType(str(msg_type))

    kwargs: dict[str, Any] = {}
    try:
        for f in fields(cls):
            if f.name not in msg:
                continue
            value = msg[f.name]
            decoder = _FIELD_DECODERS.get(f.name)
            kwargs[f.name] = decoder(value) if decoder is not None else value
        return cls(**kwargs)
    except (TypeError, AttributeError) as exc:
        raise ValueError(f"malformed {msg_type} payload: {exc}") from exc


def decode_server_event(raw: str | bytes) -> ServerEvent:
    return event_from_dict(parse_server_message(raw))


def truncate_for_log(text: str, limit: int | None = None) -> str:
    """Clip a wire payload for trace logging, noting the full size."""
    max_bytes = TRACE_LOG_MAX_BYTES if limit is None else limit
    data = text.encode("utf-8")
    if len(data) <= max_bytes:
        return text
    head = data[:max_bytes].decode("utf-8", errors="ignore")
    return f"{head}{TRACE_TRUNCATE_SUFFIX} {len(data)} bytes"


__all__ = [
    "decode_server_event",
    "encode_client_event",
    "event_from_dict",
    "truncate_for_log",
]

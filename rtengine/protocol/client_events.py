"""Client intent catalog (outbound wire messages)."""

from __future__ import annotations

import uuid
from typing import Any, Union, ClassVar
from dataclasses import fields, dataclass

from rtengine.config.protocol import EVENT_ID_PREFIX

from .items import Item, item_to_dict


@dataclass(frozen=True, slots=True)
class SessionUpdate:
    TYPE: ClassVar[str] = "session.update"

    session: dict[str, Any]
    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class InputAudioBufferAppend:
    TYPE: ClassVar[str] = "input_audio_buffer.append"

    audio: str
    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class InputAudioBufferCommit:
    TYPE: ClassVar[str] = "input_audio_buffer.commit"

    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class InputAudioBufferClear:
    TYPE: ClassVar[str] = "input_audio_buffer.clear"

    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class ConversationItemCreate:
    TYPE: ClassVar[str] = "conversation.item.create"

    item: Item
    previous_item_id: str | None = None
    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class ConversationItemRetrieve:
    TYPE: ClassVar[str] = "conversation.item.retrieve"

    item_id: str
    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class ConversationItemTruncate:
    TYPE: ClassVar[str] = "conversation.item.truncate"

    item_id: str
    content_index: int
    audio_end_ms: int
    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class ConversationItemDelete:
    TYPE: ClassVar[str] = "conversation.item.delete"

    item_id: str
    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class ResponseCreate:
    TYPE: ClassVar[str] = "response.create"

    response: dict[str, Any] | None = None
    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class ResponseCancel:
    TYPE: ClassVar[str] = "response.cancel"

    response_id: str | None = None
    event_id: str | None = None


@dataclass(frozen=True, slots=True)
class OutputAudioBufferClear:
    TYPE: ClassVar[str] = "output_audio_buffer.clear"

    event_id: str | None = None


ClientEvent = Union[
    SessionUpdate,
    InputAudioBufferAppend,
    InputAudioBufferCommit,
    InputAudioBufferClear,
    ConversationItemCreate,
    ConversationItemRetrieve,
    ConversationItemTruncate,
    ConversationItemDelete,
    ResponseCreate,
    ResponseCancel,
    OutputAudioBufferClear,
]

CLIENT_EVENT_TYPES: dict[str, type] = {
    cls.TYPE: cls
    for cls in (
        SessionUpdate,
        InputAudioBufferAppend,
        InputAudioBufferCommit,
        InputAudioBufferClear,
        ConversationItemCreate,
        ConversationItemRetrieve,
        ConversationItemTruncate,
        ConversationItemDelete,
        ResponseCreate,
        ResponseCancel,
        OutputAudioBufferClear,
    )
}


def new_event_id() -> str:
    return f"{EVENT_ID_PREFIX}{uuid.uuid4().hex[:24]}"


def client_event_to_dict(event: ClientEvent) -> dict[str, Any]:
    """Map an intent to its wire object; optional fields left as None are omitted."""
    out: dict[str, Any] = {"type": event.TYPE}
    for f in fields(event):
        value = getattr(event, f.name)
        if value is None:
            continue
        if f.name == "item":
            value = item_to_dict(value)
        out[f.name] = value
    return out


__all__ = [
    "CLIENT_EVENT_TYPES",
    "ClientEvent",
    "ConversationItemCreate",
    "ConversationItemDelete",
    "ConversationItemRetrieve",
    "ConversationItemTruncate",
    "InputAudioBufferAppend",
    "InputAudioBufferClear",
    "InputAudioBufferCommit",
    "OutputAudioBufferClear",
    "ResponseCancel",
    "ResponseCreate",
    "SessionUpdate",
    "client_event_to_dict",
    "new_event_id",
]

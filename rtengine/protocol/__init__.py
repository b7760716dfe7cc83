"""Wire model and event codec for the realtime protocol."""

from .items import Item, MessageItem, item_to_dict, item_from_dict
from .session import Session
from .content import ContentPart, input_text, input_audio
from .response import Usage, Response, RateLimit, ServerError
from .not_fetched import NOT_FETCHED, NotFetched
from .codec import truncate_for_log, event_from_dict, decode_server_event, encode_client_event
from .server_events import UnknownEvent, ServerEvent, SERVER_EVENT_TYPES
from .client_events import ClientEvent, CLIENT_EVENT_TYPES
from .presets import (
    transcription,
    turn_detection,
    noise_reduction,
    vad_server_default,
    merge_session_updates,
)

__all__ = [
    "CLIENT_EVENT_TYPES",
    "ClientEvent",
    "ContentPart",
    "Item",
    "MessageItem",
    "NOT_FETCHED",
    "NotFetched",
    "RateLimit",
    "Response",
    "SERVER_EVENT_TYPES",
    "ServerError",
    "ServerEvent",
    "Session",
    "UnknownEvent",
    "Usage",
    "decode_server_event",
    "encode_client_event",
    "event_from_dict",
    "input_audio",
    "input_text",
    "item_from_dict",
    "item_to_dict",
    "merge_session_updates",
    "noise_reduction",
    "transcription",
    "truncate_for_log",
    "turn_detection",
    "vad_server_default",
]

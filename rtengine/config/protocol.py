"""Realtime protocol constants."""

from __future__ import annotations

# previous_item_id value meaning "beginning of the conversation".
ROOT_ITEM_ID = "root"

# response.create conversation targets. "default" is accepted as an alias of "auto".
CONVERSATION_AUTO = "auto"
CONVERSATION_DEFAULT = "default"
CONVERSATION_NONE = "none"

MODALITY_AUDIO = "audio"
MODALITY_TEXT = "text"

TEMPERATURE_MIN = 0.0
TEMPERATURE_MAX = 2.0

RESPONSE_IN_PROGRESS = "in_progress"
RESPONSE_COMPLETED = "completed"
RESPONSE_CANCELLED = "cancelled"
RESPONSE_FAILED = "failed"
RESPONSE_INCOMPLETE = "incomplete"
RESPONSE_TERMINAL_STATUSES = frozenset(
    {RESPONSE_COMPLETED, RESPONSE_CANCELLED, RESPONSE_FAILED, RESPONSE_INCOMPLETE}
)

ITEM_IN_PROGRESS = "in_progress"
ITEM_COMPLETED = "completed"

EVENT_ID_PREFIX = "event_"

# Server error codes that mean "the item you referenced does not exist".
ITEM_NOT_FOUND_CODES = frozenset({"item_not_found", "conversation_item_not_found"})

__all__ = [
    "CONVERSATION_AUTO",
    "CONVERSATION_DEFAULT",
    "CONVERSATION_NONE",
    "EVENT_ID_PREFIX",
    "ITEM_COMPLETED",
    "ITEM_IN_PROGRESS",
    "ITEM_NOT_FOUND_CODES",
    "MODALITY_AUDIO",
    "MODALITY_TEXT",
    "RESPONSE_CANCELLED",
    "RESPONSE_COMPLETED",
    "RESPONSE_FAILED",
    "RESPONSE_INCOMPLETE",
    "RESPONSE_IN_PROGRESS",
    "RESPONSE_TERMINAL_STATUSES",
    "ROOT_ITEM_ID",
    "TEMPERATURE_MAX",
    "TEMPERATURE_MIN",
]

"""Client-side engine for a stateful realtime inference protocol."""

from .client import connect
from .tools import ToolCall, ToolResult, ToolRegistry
from .engine import (
    VoiceEvent,
    AudioChunk,
    EngineSender,
    EventHandlers,
    EngineReceiver,
    RealtimeEngine,
    TranscriptChunk,
)
from .protocol import NOT_FETCHED, ServerEvent, UnknownEvent
from .transport import Transport, WebSocketTransport
from .errors import (
    VoiceLocked,
    ItemNotFound,
    ChunkTooLarge,
    InvalidIntent,
    RealtimeError,
    NotTruncatable,
    ServerReported,
    TransportError,
    ConnectionClosed,
    ResponseConflict,
    UnknownEventType,
    EmptyBufferCommit,
    TranscriptionFailed,
    ImmutableFieldChange,
)

__all__ = [
    "AudioChunk",
    "ChunkTooLarge",
    "ConnectionClosed",
    "EmptyBufferCommit",
    "EngineReceiver",
    "EngineSender",
    "EventHandlers",
    "ImmutableFieldChange",
    "InvalidIntent",
    "ItemNotFound",
    "NOT_FETCHED",
    "NotTruncatable",
    "RealtimeEngine",
    "RealtimeError",
    "ResponseConflict",
    "ServerEvent",
    "ServerReported",
    "ToolCall",
    "ToolRegistry",
    "ToolResult",
    "TranscriptChunk",
    "TranscriptionFailed",
    "Transport",
    "TransportError",
    "UnknownEvent",
    "UnknownEventType",
    "VoiceEvent",
    "VoiceLocked",
    "WebSocketTransport",
    "connect",
]

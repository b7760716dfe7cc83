"""Error taxonomy for the realtime engine."""

from __future__ import annotations

from typing import Any
from dataclasses import dataclass


class RealtimeError(Exception):
    """Base class for every failure raised by the engine."""

    def __str__(self) -> str:
        fields = getattr(self, "__dataclass_fields__", None) or {}
        parts = [f"{name}={getattr(self, name)!r}" for name in fields]
        return f"{type(self).__name__}({', '.join(parts)})"


@dataclass(eq=False, slots=True)
class InvalidIntent(RealtimeError):
    """Raised when an outbound intent violates a protocol constraint."""

    intent: str
    reason: str


@dataclass(eq=False, slots=True)
class ImmutableFieldChange(RealtimeError):
    """Raised when a session update tries to change a field fixed at creation."""

    field: str
    current: Any
    requested: Any


@dataclass(eq=False, slots=True)
class VoiceLocked(RealtimeError):
    """Raised when the voice changes after output audio was emitted."""

    current: str | None
    requested: Any


@dataclass(eq=False, slots=True)
class ChunkTooLarge(RealtimeError):
    """Raised when a single audio append exceeds the per-message cap."""

    size: int
    limit: int


@dataclass(eq=False, slots=True)
class EmptyBufferCommit(RealtimeError):
    """Raised when committing an input audio buffer that holds no audio."""


@dataclass(eq=False, slots=True)
class ItemNotFound(RealtimeError):
    """Raised when an item id is not present in the conversation."""

    item_id: str
    server_error: Any = None


@dataclass(eq=False, slots=True)
class NotTruncatable(RealtimeError):
    """Raised when truncating anything other than assistant audio."""

    item_id: str
    reason: str


@dataclass(eq=False, slots=True)
class ResponseConflict(RealtimeError):
    """Raised when a default-conversation response is already in flight."""

    active_response_id: str | None


@dataclass(eq=False, slots=True)
class ConnectionClosed(RealtimeError):
    """Raised for every intent once the connection has shut down."""

    reason: str = "connection closed"


@dataclass(eq=False, slots=True)
class TransportError(RealtimeError):
    """Raised when the underlying transport fails."""

    reason: str


@dataclass(eq=False, slots=True)
class ServerReported(RealtimeError):
    """Wraps an inbound `error` event. The session stays usable."""

    error: Any

    @property
    def code(self) -> str | None:
        return getattr(self.error, "code", None)


@dataclass(eq=False, slots=True)
class TranscriptionFailed(RealtimeError):
    """Per-item input transcription failure. Never fatal."""

    item_id: str
    content_index: int
    error: Any


@dataclass(eq=False, slots=True)
class UnknownEventType(RealtimeError, ValueError):
    """Raised by the codec for a wire tag outside the known catalog."""

    event_type: str


__all__ = [
    "ChunkTooLarge",
    "ConnectionClosed",
    "EmptyBufferCommit",
    "ImmutableFieldChange",
    "InvalidIntent",
    "ItemNotFound",
    "NotTruncatable",
    "RealtimeError",
    "ResponseConflict",
    "ServerReported",
    "TranscriptionFailed",
    "TransportError",
    "UnknownEventType",
    "VoiceLocked",
]

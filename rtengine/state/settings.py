"""Runtime settings (dataclasses only)."""

from __future__ import annotations

from dataclasses import dataclass

from rtengine.config.audio import MAX_INPUT_AUDIO_CHUNK_BYTES
from rtengine.config.websocket import (
    REALTIME_MODEL,
    REALTIME_WS_URL,
    WS_OPEN_TIMEOUT_S,
    WS_PING_TIMEOUT_S,
    WS_PING_INTERVAL_S,
    WS_MAX_MESSAGE_BYTES,
)
from rtengine.config.engine import (
    AUTO_BARGE_IN,
    EVENT_QUEUE_MAX,
    CLOSE_TIMEOUT_S,
    AUTO_TOOL_RESPONSE,
    DERIVED_STREAM_MAX,
    OUTBOUND_QUEUE_MAX,
    FINISHED_RESPONSES_MAX,
)


@dataclass(frozen=True, slots=True)
class AuthSettings:
    api_key: str


@dataclass(frozen=True, slots=True)
class ConnectionSettings:
    url: str = REALTIME_WS_URL
    model: str = REALTIME_MODEL
    ping_interval_s: float = WS_PING_INTERVAL_S
    ping_timeout_s: float = WS_PING_TIMEOUT_S
    open_timeout_s: float = WS_OPEN_TIMEOUT_S
    max_message_bytes: int = WS_MAX_MESSAGE_BYTES


@dataclass(frozen=True, slots=True)
class EngineSettings:
    outbound_queue_max: int = OUTBOUND_QUEUE_MAX
    event_queue_max: int = EVENT_QUEUE_MAX
    finished_responses_max: int = FINISHED_RESPONSES_MAX
    close_timeout_s: float = CLOSE_TIMEOUT_S
    max_input_audio_chunk_bytes: int = MAX_INPUT_AUDIO_CHUNK_BYTES
    auto_barge_in: bool = AUTO_BARGE_IN
    auto_tool_response: bool = AUTO_TOOL_RESPONSE
    derived_stream_max: int = DERIVED_STREAM_MAX


@dataclass(frozen=True, slots=True)
class AppSettings:
    auth: AuthSettings
    connection: ConnectionSettings
    engine: EngineSettings


__all__ = [
    "AppSettings",
    "AuthSettings",
    "ConnectionSettings",
    "EngineSettings",
]

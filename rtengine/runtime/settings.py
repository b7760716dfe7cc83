"""Load runtime settings.

Configuration values are resolved from the environment in `rtengine/config/*`
and exposed here as structured dataclasses for the engine and transport.
"""

from __future__ import annotations

from rtengine.config.secrets import get_openai_api_key
from rtengine.config.audio import MAX_INPUT_AUDIO_CHUNK_BYTES
from rtengine.state.settings import AppSettings, AuthSettings, EngineSettings, ConnectionSettings
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


def load_settings() -> AppSettings:
    return AppSettings(
        auth=AuthSettings(api_key=get_openai_api_key()),
        connection=ConnectionSettings(
            url=REALTIME_WS_URL,
            model=REALTIME_MODEL,
            ping_interval_s=WS_PING_INTERVAL_S,
            ping_timeout_s=WS_PING_TIMEOUT_S,
            open_timeout_s=WS_OPEN_TIMEOUT_S,
            max_message_bytes=WS_MAX_MESSAGE_BYTES,
        ),
        engine=EngineSettings(
            outbound_queue_max=OUTBOUND_QUEUE_MAX,
            event_queue_max=EVENT_QUEUE_MAX,
            finished_responses_max=FINISHED_RESPONSES_MAX,
            close_timeout_s=CLOSE_TIMEOUT_S,
            max_input_audio_chunk_bytes=MAX_INPUT_AUDIO_CHUNK_BYTES,
            auto_barge_in=AUTO_BARGE_IN,
            auto_tool_response=AUTO_TOOL_RESPONSE,
            derived_stream_max=DERIVED_STREAM_MAX,
        ),
    )


__all__ = ["load_settings"]

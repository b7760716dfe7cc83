"""Engine queue sizing and behaviour toggles (env-resolved constants only)."""

from __future__ import annotations

import os


def _get_int(name: str, default: int, *, minimum: int) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        value = int(raw) if raw else default
    except Exception:
        value = default
    return max(minimum, int(value))


def _get_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        value = float(raw) if raw else default
    except Exception:
        value = default
    if value < 0:
        return default
    return float(value)


def _get_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


# Outbound intents waiting for the writer. Submitting blocks once this fills.
OUTBOUND_QUEUE_MAX: int = _get_int("RT_OUTBOUND_QUEUE_MAX", 256, minimum=1)

# Decoded events waiting for the consumer. The reader stalls once this fills.
EVENT_QUEUE_MAX: int = _get_int("RT_EVENT_QUEUE_MAX", 1024, minimum=1)

# Terminal responses kept around for inspection after response.done.
FINISHED_RESPONSES_MAX: int = _get_int("RT_FINISHED_RESPONSES_MAX", 64, minimum=0)

# Per-stream capacity for next_text/next_voice_event/next_audio_chunk/next_transcript.
# The oldest entry is dropped once a stream nobody reads fills up.
DERIVED_STREAM_MAX: int = _get_int("RT_DERIVED_STREAM_MAX", 128, minimum=1)

# Time allowed for the transport to close during shutdown.
CLOSE_TIMEOUT_S: float = _get_float("RT_CLOSE_TIMEOUT_S", 5.0)

AUTO_BARGE_IN: bool = _get_bool("RT_AUTO_BARGE_IN", True)
AUTO_TOOL_RESPONSE: bool = _get_bool("RT_AUTO_TOOL_RESPONSE", True)

__all__ = [
    "AUTO_BARGE_IN",
    "AUTO_TOOL_RESPONSE",
    "CLOSE_TIMEOUT_S",
    "DERIVED_STREAM_MAX",
    "EVENT_QUEUE_MAX",
    "FINISHED_RESPONSES_MAX",
    "OUTBOUND_QUEUE_MAX",
]

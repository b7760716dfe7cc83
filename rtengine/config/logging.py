"""Logging configuration (env-resolved constants only)."""

from __future__ import annotations

import os

LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
LOG_FORMAT: str = (os.getenv("LOG_FORMAT") or "").strip() or "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Wire payloads logged at DEBUG are clipped to this many bytes.
_TRACE_LOG_MAX_BYTES_RAW = (os.getenv("TRACE_LOG_MAX_BYTES") or "").strip()
try:
    TRACE_LOG_MAX_BYTES: int = int(_TRACE_LOG_MAX_BYTES_RAW) if _TRACE_LOG_MAX_BYTES_RAW else 1024
except Exception:
    TRACE_LOG_MAX_BYTES = 1024
TRACE_LOG_MAX_BYTES = max(0, int(TRACE_LOG_MAX_BYTES))

TRACE_TRUNCATE_SUFFIX = "... (truncated)"

SHOW_WEBSOCKETS_LOGS: bool = (os.getenv("SHOW_WEBSOCKETS_LOGS") or "").strip().lower() in {"1", "true", "yes"}

__all__ = [
    "LOG_FORMAT",
    "LOG_LEVEL",
    "SHOW_WEBSOCKETS_LOGS",
    "TRACE_LOG_MAX_BYTES",
    "TRACE_TRUNCATE_SUFFIX",
]

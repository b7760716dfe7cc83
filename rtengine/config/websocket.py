"""WebSocket transport configuration and constants."""

from __future__ import annotations

import os

REALTIME_WS_URL: str = (os.getenv("REALTIME_WS_URL") or "").strip() or "wss://api.openai.com/v1/realtime"
REALTIME_MODEL: str = (os.getenv("REALTIME_MODEL") or "").strip() or "gpt-realtime"

# Close codes
WS_CLOSE_CLIENT_REQUEST_CODE = 1000
WS_CLOSE_CLIENT_REQUEST_REASON = "client closed"

# Keepalive (websockets protocol-level pings)
_WS_PING_INTERVAL_S_RAW = (os.getenv("WS_PING_INTERVAL_S") or "").strip()
try:
    WS_PING_INTERVAL_S: float = float(_WS_PING_INTERVAL_S_RAW) if _WS_PING_INTERVAL_S_RAW else 20.0
except Exception:
    WS_PING_INTERVAL_S = 20.0

_WS_PING_TIMEOUT_S_RAW = (os.getenv("WS_PING_TIMEOUT_S") or "").strip()
try:
    WS_PING_TIMEOUT_S: float = float(_WS_PING_TIMEOUT_S_RAW) if _WS_PING_TIMEOUT_S_RAW else 20.0
except Exception:
    WS_PING_TIMEOUT_S = 20.0

_WS_OPEN_TIMEOUT_S_RAW = (os.getenv("WS_OPEN_TIMEOUT_S") or "").strip()
try:
    WS_OPEN_TIMEOUT_S: float = float(_WS_OPEN_TIMEOUT_S_RAW) if _WS_OPEN_TIMEOUT_S_RAW else 10.0
except Exception:
    WS_OPEN_TIMEOUT_S = 10.0
if WS_OPEN_TIMEOUT_S <= 0:
    WS_OPEN_TIMEOUT_S = 10.0

# Appends carry up to 15 MiB of audio, base64 inflates that by 4/3.
WS_MAX_MESSAGE_BYTES: int = 32 * 1024 * 1024

__all__ = [
    "REALTIME_MODEL",
    "REALTIME_WS_URL",
    "WS_CLOSE_CLIENT_REQUEST_CODE",
    "WS_CLOSE_CLIENT_REQUEST_REASON",
    "WS_MAX_MESSAGE_BYTES",
    "WS_OPEN_TIMEOUT_S",
    "WS_PING_INTERVAL_S",
    "WS_PING_TIMEOUT_S",
]

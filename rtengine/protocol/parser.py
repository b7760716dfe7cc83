"""Inbound wire message parsing."""

from __future__ import annotations

from typing import Any

import orjson


def parse_server_message(raw: str | bytes) -> dict[str, Any]:
    try:
        msg = orjson.loads(raw)
    except Exception as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc

    if not isinstance(msg, dict):
        raise ValueError("message must be a JSON object")

    msg_type = msg.get("type")
    if not isinstance(msg_type, str) or not msg_type.strip():
        raise ValueError("message missing non-empty 'type'")

    # Normalize
    msg["type"] = msg_type.strip()
    return msg


__all__ = ["parse_server_message"]

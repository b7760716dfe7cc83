"""Client-side protocol validation for outbound intents."""

from __future__ import annotations

import re
from typing import Any

from rtengine.errors import InvalidIntent
from rtengine.config.protocol import MODALITY_TEXT, MODALITY_AUDIO, TEMPERATURE_MAX, TEMPERATURE_MIN
from rtengine.config.audio import (
    AUDIO_FORMATS,
    AUDIO_FORMAT_PCM,
    PCM_SAMPLE_RATE_HZ,
    G711_SAMPLE_RATE_HZ,
    PCM_BYTES_PER_SAMPLE,
    G711_BYTES_PER_SAMPLE,
)

from .session import normalize_session_fields

_B64_BODY = re.compile(r"[A-Za-z0-9+/]*")

# Pre-GA string formats.
_LEGACY_FORMATS = {
    "pcm16": (PCM_SAMPLE_RATE_HZ, PCM_BYTES_PER_SAMPLE),
    "g711_ulaw": (G711_SAMPLE_RATE_HZ, G711_BYTES_PER_SAMPLE),
    "g711_alaw": (G711_SAMPLE_RATE_HZ, G711_BYTES_PER_SAMPLE),
}


def estimate_b64_decoded_bytes(s: str, *, intent: str = "input_audio_buffer.append") -> int:
    """Return the decoded byte length of a base64 string without decoding it.

    Raises InvalidIntent for a malformed payload (length, padding or alphabet).
    """
    if len(s) % 4 != 0:
        raise InvalidIntent(intent, "invalid base64 length")

    body = s.rstrip("=")
    padding = len(s) - len(body)
    if padding > 2:
        raise InvalidIntent(intent, "invalid base64 padding length")
    if "=" in body:
        raise InvalidIntent(intent, "invalid base64 padding")
    if _B64_BODY.fullmatch(body) is None:
        raise InvalidIntent(intent, "invalid base64 character")

    # base64 expands 3 bytes -> 4 chars
    return len(s) // 4 * 3 - padding


def audio_format_params(fmt: Any) -> tuple[int, int]:
    """Return (sample_rate_hz, bytes_per_sample) for an audio format value."""
    if fmt is None:
        return PCM_SAMPLE_RATE_HZ, PCM_BYTES_PER_SAMPLE
    if isinstance(fmt, str):
        if fmt in _LEGACY_FORMATS:
            return _LEGACY_FORMATS[fmt]
        fmt = {"type": fmt}
    if isinstance(fmt, dict):
        kind = fmt.get("type")
        if kind == AUDIO_FORMAT_PCM:
            return int(fmt.get("rate") or PCM_SAMPLE_RATE_HZ), PCM_BYTES_PER_SAMPLE
        if kind in AUDIO_FORMATS:
            return G711_SAMPLE_RATE_HZ, G711_BYTES_PER_SAMPLE
    return PCM_SAMPLE_RATE_HZ, PCM_BYTES_PER_SAMPLE


def audio_bytes_per_ms(fmt: Any) -> float:
    rate, width = audio_format_params(fmt)
    return rate * width / 1000.0


def validate_audio_format(fmt: Any, *, intent: str) -> None:
    if fmt is None or (isinstance(fmt, str) and fmt in _LEGACY_FORMATS):
        return
    if isinstance(fmt, str):
        fmt = {"type": fmt}
    if not isinstance(fmt, dict):
        raise InvalidIntent(intent, "audio format must be an object")
    kind = fmt.get("type")
    if kind not in AUDIO_FORMATS:
        raise InvalidIntent(intent, f"unsupported audio format {kind!r}")
    if kind == AUDIO_FORMAT_PCM:
        rate = fmt.get("rate", PCM_SAMPLE_RATE_HZ)
        if rate != PCM_SAMPLE_RATE_HZ:
            raise InvalidIntent(intent, f"audio/pcm rate must be {PCM_SAMPLE_RATE_HZ}, got {rate}")


def validate_tools(tools: Any, *, intent: str) -> None:
    if tools is None:
        return
    if not isinstance(tools, list):
        raise InvalidIntent(intent, "tools must be a list")
    for tool in tools:
        if not isinstance(tool, dict):
            raise InvalidIntent(intent, "each tool must be an object")
        if tool.get("type") == "mcp" and not (tool.get("server_url") or tool.get("connector_id")):
            raise InvalidIntent(intent, "mcp tool requires server_url or connector_id")


def validate_temperature(value: Any, *, intent: str) -> None:
    if value is None:
        return
    try:
        temp = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidIntent(intent, "temperature must be a number") from exc
    if not (TEMPERATURE_MIN <= temp <= TEMPERATURE_MAX):
        raise InvalidIntent(
            intent, f"temperature must be between {TEMPERATURE_MIN} and {TEMPERATURE_MAX}, got {temp}"
        )


def validate_output_modalities(value: Any, *, intent: str) -> None:
    if value is None:
        return
    if not isinstance(value, list) or len(value) != 1 or value[0] not in {MODALITY_AUDIO, MODALITY_TEXT}:
        raise InvalidIntent(intent, "output_modalities must be exactly one of ['audio'] or ['text']")


def validate_session_fields(partial: dict[str, Any], *, intent: str = "session.update") -> dict[str, Any]:
    """Validate a session object or partial and return its flattened form."""
    flat = normalize_session_fields(partial)
    validate_audio_format(flat.get("input_audio_format"), intent=intent)
    validate_audio_format(flat.get("output_audio_format"), intent=intent)
    validate_tools(flat.get("tools"), intent=intent)
    validate_temperature(flat.get("temperature"), intent=intent)
    validate_output_modalities(flat.get("output_modalities"), intent=intent)
    return flat


def validate_response_config(config: dict[str, Any] | None) -> None:
    if config is None:
        return
    if not isinstance(config, dict):
        raise InvalidIntent("response.create", "response config must be an object")
    validate_session_fields(config, intent="response.create")


__all__ = [
    "audio_bytes_per_ms",
    "audio_format_params",
    "estimate_b64_decoded_bytes",
    "validate_audio_format",
    "validate_output_modalities",
    "validate_response_config",
    "validate_session_fields",
    "validate_temperature",
    "validate_tools",
]

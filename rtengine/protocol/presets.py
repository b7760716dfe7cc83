"""Ready-made `session.update` partials for common voice setups.

Presets use the nested `audio.input` layout and can be combined with
`merge_session_updates` before being passed to `update_session`.
"""

from __future__ import annotations

import copy
from typing import Any

from rtengine.errors import InvalidIntent
from rtengine.config.audio import VAD_SERVER

NOISE_REDUCTION_NEAR_FIELD = "near_field"
NOISE_REDUCTION_FAR_FIELD = "far_field"
_NOISE_REDUCTION_TYPES = (NOISE_REDUCTION_NEAR_FIELD, NOISE_REDUCTION_FAR_FIELD)


def _audio_input(key: str, value: Any) -> dict[str, Any]:
    return {"audio": {"input": {key: value}}}


def vad_server_default() -> dict[str, Any]:
    """Server VAD with default thresholds that answers and interrupts on its own."""
    return turn_detection({"type": VAD_SERVER, "create_response": True, "interrupt_response": True})


def turn_detection(config: dict[str, Any] | None) -> dict[str, Any]:
    """Set turn detection; None disables it."""
    if config is not None and not isinstance(config, dict):
        raise InvalidIntent("session.update", "turn_detection must be an object or None")
    return _audio_input("turn_detection", copy.deepcopy(config))


def transcription(model: str, *, language: str | None = None, prompt: str | None = None) -> dict[str, Any]:
    if not model:
        raise InvalidIntent("session.update", "transcription model is required")
    config: dict[str, Any] = {"model": model}
    if language:
        config["language"] = language
    if prompt:
        config["prompt"] = prompt
    return _audio_input("transcription", config)


def noise_reduction(kind: str | None) -> dict[str, Any]:
    """Input noise reduction; None turns it off."""
    if kind is not None and kind not in _NOISE_REDUCTION_TYPES:
        raise InvalidIntent("session.update", f"unsupported noise reduction {kind!r}")
    return _audio_input("noise_reduction", None if kind is None else {"type": kind})


def merge_session_updates(*partials: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge partials left to right; later values win."""
    merged: dict[str, Any] = {}
    for partial in partials:
        _merge_into(merged, partial)
    return merged


def _merge_into(target: dict[str, Any], source: dict[str, Any]) -> None:
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_into(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


__all__ = [
    "NOISE_REDUCTION_FAR_FIELD",
    "NOISE_REDUCTION_NEAR_FIELD",
    "merge_session_updates",
    "noise_reduction",
    "transcription",
    "turn_detection",
    "vad_server_default",
]

"""Session configuration mirror.

The realtime API accepts both the flat legacy layout (`voice`, `turn_detection`,
`input_audio_format`, ...) and the nested GA layout under `audio.input` /
`audio.output`. Both are normalized here into one flat set of keys so the
session manager can validate and merge without caring which layout was used.
"""

from __future__ import annotations

import copy
from typing import Any
from dataclasses import field, dataclass

from rtengine.config.audio import VAD_SERVER, VAD_SEMANTIC

# Flat key -> (audio section, nested key)
_NESTED_AUDIO_KEYS: dict[str, tuple[str, str]] = {
    "input_audio_format": ("input", "format"),
    "turn_detection": ("input", "turn_detection"),
    "input_audio_transcription": ("input", "transcription"),
    "input_audio_noise_reduction": ("input", "noise_reduction"),
    "output_audio_format": ("output", "format"),
    "voice": ("output", "voice"),
    "speed": ("output", "speed"),
}

SESSION_FIELDS = (
    "id",
    "model",
    "output_modalities",
    "instructions",
    "voice",
    "input_audio_format",
    "output_audio_format",
    "turn_detection",
    "tools",
    "tool_choice",
    "temperature",
    "max_output_tokens",
    "input_audio_transcription",
)


def normalize_session_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Flatten a session object or partial update, preserving key presence.

    An explicit ``None`` stays in the result so callers can tell "clear" from
    "absent".
    """
    if not isinstance(data, dict):
        raise ValueError("session must be an object")

    flat: dict[str, Any] = {k: v for k, v in data.items() if k != "audio"}
    if "modalities" in flat and "output_modalities" not in flat:
        flat["output_modalities"] = flat.pop("modalities")

    audio = data.get("audio")
    if isinstance(audio, dict):
        for flat_key, (section, nested_key) in _NESTED_AUDIO_KEYS.items():
            sub = audio.get(section)
            if isinstance(sub, dict) and nested_key in sub:
                flat[flat_key] = sub[nested_key]

    voice = flat.get("voice")
    if isinstance(voice, dict) and isinstance(voice.get("id"), str):
        flat["voice"] = voice["id"]
    return flat


@dataclass(slots=True)
class Session:
    id: str | None = None
    model: str | None = None
    output_modalities: list[str] | None = None
    instructions: str | None = None
    voice: str | None = None
    input_audio_format: Any = None
    output_audio_format: Any = None
    turn_detection: dict[str, Any] | None = None
    tools: list[dict[str, Any]] = field(default_factory=list)
    tool_choice: Any = None
    temperature: float | None = None
    max_output_tokens: Any = None
    input_audio_transcription: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        flat = normalize_session_fields(data)
        kwargs = {k: copy.deepcopy(flat[k]) for k in SESSION_FIELDS if k in flat}
        if kwargs.get("tools") is None:
            kwargs["tools"] = []
        extra = {k: v for k, v in flat.items() if k not in SESSION_FIELDS}
        return cls(extra=extra, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        for key in SESSION_FIELDS:
            value = getattr(self, key)
            if value is not None:
                out[key] = copy.deepcopy(value)
        if self.turn_detection is None:
            out["turn_detection"] = None
        return out

    @property
    def vad_type(self) -> str | None:
        td = self.turn_detection
        if not isinstance(td, dict):
            return None
        kind = td.get("type")
        return kind if isinstance(kind, str) else None

    def _vad_flag(self, key: str) -> bool:
        if self.vad_type not in {VAD_SERVER, VAD_SEMANTIC}:
            return False
        value = (self.turn_detection or {}).get(key)
        # The server defaults both flags to true when turn detection is on.
        return True if value is None else bool(value)

    @property
    def vad_create_response(self) -> bool:
        return self._vad_flag("create_response")

    @property
    def vad_interrupt_response(self) -> bool:
        return self._vad_flag("interrupt_response")


__all__ = ["SESSION_FIELDS", "Session", "normalize_session_fields"]

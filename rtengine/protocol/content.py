"""Conversation content parts."""

from __future__ import annotations

from typing import Any
from dataclasses import field, dataclass

from .not_fetched import NOT_FETCHED, NotFetched

TEXT_PART_TYPES = frozenset({"text", "input_text", "output_text"})
AUDIO_PART_TYPES = frozenset({"audio", "input_audio", "output_audio"})
CONTENT_PART_TYPES = TEXT_PART_TYPES | AUDIO_PART_TYPES | {"input_image"}

_KNOWN_KEYS = {"type", "text", "audio", "transcript", "format", "image_url", "detail"}


@dataclass(slots=True)
class ContentPart:
    """One content part of a message item.

    `audio` holds base64 audio, ``None`` when the part carries no audio at all,
    or ``NOT_FETCHED`` when the server left the payload out.
    """

    type: str
    text: str | None = None
    audio: str | NotFetched | None = None
    transcript: str | None = None
    format: Any = None
    image_url: str | None = None
    detail: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_audio(self) -> bool:
        return self.type in AUDIO_PART_TYPES

    @property
    def is_text(self) -> bool:
        return self.type in TEXT_PART_TYPES

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentPart:
        if not isinstance(data, dict):
            raise ValueError("content part must be an object")
        part_type = data.get("type")
        if not isinstance(part_type, str) or not part_type:
            raise ValueError("content part missing non-empty 'type'")

        audio: str | NotFetched | None = data.get("audio")
        if part_type in AUDIO_PART_TYPES and not audio:
            audio = NOT_FETCHED

        return cls(
            type=part_type,
            text=data.get("text"),
            audio=audio,
            transcript=data.get("transcript"),
            format=data.get("format"),
            image_url=data.get("image_url"),
            detail=data.get("detail"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type}
        if self.text is not None:
            out["text"] = self.text
        if isinstance(self.audio, str):
            out["audio"] = self.audio
        for key in ("transcript", "format", "image_url", "detail"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        out.update(self.extra)
        return out


def input_text(text: str) -> ContentPart:
    return ContentPart(type="input_text", text=text)


def input_audio(audio_b64: str) -> ContentPart:
    return ContentPart(type="input_audio", audio=audio_b64)


__all__ = [
    "AUDIO_PART_TYPES",
    "CONTENT_PART_TYPES",
    "ContentPart",
    "TEXT_PART_TYPES",
    "input_audio",
    "input_text",
]

"""Response, usage, rate limit and server error payloads."""

from __future__ import annotations

from typing import Any
from dataclasses import field, dataclass

from .items import Item, item_from_dict


@dataclass(frozen=True, slots=True)
class ServerError:
    type: str = "server_error"
    message: str = ""
    code: str | None = None
    param: str | None = None
    event_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ServerError:
        data = data or {}
        return cls(
            type=str(data.get("type") or "server_error"),
            message=str(data.get("message") or ""),
            code=data.get("code"),
            param=data.get("param"),
            event_id=data.get("event_id"),
        )


@dataclass(frozen=True, slots=True)
class Usage:
    total_tokens: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    input_token_details: dict[str, Any] | None = None
    output_token_details: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Usage | None:
        if not isinstance(data, dict):
            return None
        return cls(
            total_tokens=int(data.get("total_tokens") or 0),
            input_tokens=int(data.get("input_tokens") or 0),
            output_tokens=int(data.get("output_tokens") or 0),
            input_token_details=data.get("input_token_details"),
            output_token_details=data.get("output_token_details"),
        )


@dataclass(frozen=True, slots=True)
class RateLimit:
    name: str
    limit: int = 0
    remaining: int = 0
    reset_seconds: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RateLimit:
        return cls(
            name=str(data.get("name") or ""),
            limit=int(data.get("limit") or 0),
            remaining=int(data.get("remaining") or 0),
            reset_seconds=float(data.get("reset_seconds") or 0.0),
        )


@dataclass(slots=True)
class Response:
    id: str = ""
    object: str = "realtime.response"
    status: str = "in_progress"
    conversation_id: str | None = None
    status_details: dict[str, Any] | None = None
    output: list[Item] = field(default_factory=list)
    usage: Usage | None = None
    metadata: dict[str, Any] | None = None

    @property
    def is_out_of_band(self) -> bool:
        return self.conversation_id is None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Response:
        data = data or {}
        return cls(
            id=str(data.get("id") or ""),
            object=str(data.get("object") or "realtime.response"),
            status=str(data.get("status") or "in_progress"),
            conversation_id=data.get("conversation_id"),
            status_details=data.get("status_details"),
            output=[item_from_dict(item) for item in (data.get("output") or [])],
            usage=Usage.from_dict(data.get("usage")),
            metadata=data.get("metadata"),
        )


__all__ = ["RateLimit", "Response", "ServerError", "Usage"]

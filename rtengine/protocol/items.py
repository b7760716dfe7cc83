"""Conversation item variants and their wire mapping."""

from __future__ import annotations

import copy
from typing import Any, Union, ClassVar
from dataclasses import field, fields, dataclass

from .content import ContentPart


@dataclass(slots=True)
class MessageItem:
    TYPE: ClassVar[str] = "message"

    id: str | None = None
    status: str | None = None
    role: str = "user"
    content: list[ContentPart] = field(default_factory=list)


@dataclass(slots=True)
class FunctionCallItem:
    TYPE: ClassVar[str] = "function_call"

    id: str | None = None
    status: str | None = None
    name: str = ""
    call_id: str = ""
    arguments: str = ""


@dataclass(slots=True)
class FunctionCallOutputItem:
    TYPE: ClassVar[str] = "function_call_output"

    id: str | None = None
    status: str | None = None
    call_id: str = ""
    output: str = ""


@dataclass(slots=True)
class McpCallItem:
    TYPE: ClassVar[str] = "mcp_call"

    id: str | None = None
    status: str | None = None
    server_label: str = ""
    name: str = ""
    arguments: str = ""
    call_id: str | None = None
    approval_request_id: str | None = None
    output: str | None = None
    error: Any = None


@dataclass(slots=True)
class McpListToolsItem:
    TYPE: ClassVar[str] = "mcp_list_tools"

    id: str | None = None
    status: str | None = None
    server_label: str = ""
    tools: list[dict[str, Any]] | None = None


@dataclass(slots=True)
class McpApprovalRequestItem:
    TYPE: ClassVar[str] = "mcp_approval_request"

    id: str | None = None
    status: str | None = None
    server_label: str = ""
    name: str = ""
    arguments: str = ""


@dataclass(slots=True)
class McpApprovalResponseItem:
    TYPE: ClassVar[str] = "mcp_approval_response"

    id: str | None = None
    status: str | None = None
    approval_request_id: str = ""
    approve: bool = False
    reason: str | None = None


@dataclass(slots=True)
class UnknownItem:
    """An item type this client does not model; the payload is kept verbatim."""

    TYPE: ClassVar[str] = "unknown"

    type: str = ""
    raw: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    status: str | None = None


Item = Union[
    MessageItem,
    FunctionCallItem,
    FunctionCallOutputItem,
    McpCallItem,
    McpListToolsItem,
    McpApprovalRequestItem,
    McpApprovalResponseItem,
    UnknownItem,
]

ITEM_TYPES: dict[str, type] = {
    cls.TYPE: cls
    for cls in (
        MessageItem,
        FunctionCallItem,
        FunctionCallOutputItem,
        McpCallItem,
        McpListToolsItem,
        McpApprovalRequestItem,
        McpApprovalResponseItem,
    )
}


def item_type(item: Item) -> str:
    if isinstance(item, UnknownItem):
        return item.type
    return item.TYPE


def item_from_dict(data: dict[str, Any]) -> Item:
    if not isinstance(data, dict):
        raise ValueError("item must be an object")
    kind = data.get("type")
    if not isinstance(kind, str) or not kind:
        raise ValueError("item missing non-empty 'type'")

    cls = ITEM_TYPES.get(kind)
    if cls is None:
        return UnknownItem(type=kind, raw=dict(data), id=data.get("id"), status=data.get("status"))

    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        if f.name == "content":
            value = [ContentPart.from_dict(part) for part in (value or [])]
        kwargs[f.name] = value
    return cls(**kwargs)


def item_to_dict(item: Item) -> dict[str, Any]:
    if isinstance(item, UnknownItem):
        out = dict(item.raw)
        if item.id is not None:
            out["id"] = item.id
        if item.status is not None:
            out["status"] = item.status
        return out

    out = {"type": item.TYPE}
    for f in fields(item):
        value = getattr(item, f.name)
        if value is None:
            continue
        if f.name == "content":
            value = [part.to_dict() for part in value]
        out[f.name] = value
    return out


def clone_item(item: Item) -> Item:
    return copy.deepcopy(item)


__all__ = [
    "FunctionCallItem",
    "FunctionCallOutputItem",
    "ITEM_TYPES",
    "Item",
    "McpApprovalRequestItem",
    "McpApprovalResponseItem",
    "McpCallItem",
    "McpListToolsItem",
    "MessageItem",
    "UnknownItem",
    "clone_item",
    "item_from_dict",
    "item_to_dict",
    "item_type",
]

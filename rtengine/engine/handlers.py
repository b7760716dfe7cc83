"""Application callbacks invoked by the reader after each event is applied."""

from __future__ import annotations

import inspect
from typing import Any
from dataclasses import dataclass
from collections.abc import Callable

from rtengine.tools import ToolCall, ToolResult

# Each handler may be a plain function or return an awaitable.
TextHandler = Callable[[str], Any]
ToolCallHandler = Callable[[ToolCall], Any]
RawEventHandler = Callable[[Any], Any]


@dataclass(slots=True)
class EventHandlers:
    """Optional callbacks.

    `on_raw_event` sees every applied server event, `on_text` every finished
    text output. `on_tool_call` answers function calls in place of the tool
    registry; its return value (or a ToolResult) becomes the call output.

    Raw and text handlers run inline on the reader, so a slow handler delays
    event delivery. Tool calls run in their own task.
    """

    on_text: TextHandler | None = None
    on_tool_call: ToolCallHandler | None = None
    on_raw_event: RawEventHandler | None = None


async def call_handler(handler: Callable[..., Any], *args: Any) -> Any:
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def as_tool_result(call: ToolCall, value: Any) -> ToolResult:
    if isinstance(value, ToolResult):
        return value
    return ToolResult(call_id=call.call_id, output=value)


__all__ = [
    "EventHandlers",
    "RawEventHandler",
    "TextHandler",
    "ToolCallHandler",
    "as_tool_result",
    "call_handler",
]

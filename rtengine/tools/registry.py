"""Named tool handlers invoked for model function calls."""

from __future__ import annotations

import inspect
import logging
from typing import Any
from collections.abc import Callable
from dataclasses import field, dataclass

import orjson

from rtengine.errors import InvalidIntent
from rtengine.protocol.validation import validate_tools

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Any]


@dataclass(frozen=True, slots=True)
class ToolCall:
    name: str
    call_id: str
    arguments: dict[str, Any] = field(default_factory=dict)
    response_id: str | None = None
    item_id: str | None = None
    output_index: int | None = None

    @classmethod
    def from_wire(
        cls,
        *,
        name: str,
        call_id: str,
        arguments: str,
        response_id: str | None = None,
        item_id: str | None = None,
        output_index: int | None = None,
    ) -> ToolCall:
        try:
            parsed = orjson.loads(arguments) if arguments else {}
        except orjson.JSONDecodeError as exc:
            raise ValueError(f"tool arguments are not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise ValueError("tool arguments must be a JSON object")
        return cls(
            name=name,
            call_id=call_id,
            arguments=parsed,
            response_id=response_id,
            item_id=item_id,
            output_index=output_index,
        )


@dataclass(frozen=True, slots=True)
class ToolResult:
    call_id: str
    output: Any

    def output_text(self) -> str:
        if isinstance(self.output, str):
            return self.output
        return orjson.dumps(self.output).decode("utf-8")


@dataclass(frozen=True, slots=True)
class _ToolEntry:
    name: str
    description: str
    parameters: dict[str, Any]
    handler: ToolHandler


class ToolRegistry:
    """Function tools plus MCP server configs advertised to the session.

    Handlers take the decoded argument object and return any JSON-serializable
    value, directly or through an awaitable.
    """

    def __init__(self) -> None:
        self._tools: dict[str, _ToolEntry] = {}
        self._mcp: list[dict[str, Any]] = []

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools) + len(self._mcp)

    def register(
        self,
        name: str,
        handler: ToolHandler,
        *,
        description: str = "",
        parameters: dict[str, Any] | None = None,
    ) -> None:
        if not name:
            raise ValueError("tool name must be non-empty")
        if name in self._tools:
            logger.warning("tool %s registered twice; replacing previous handler", name)
        schema = parameters if parameters is not None else {"type": "object", "properties": {}}
        self._tools[name] = _ToolEntry(name=name, description=description, parameters=schema, handler=handler)

    def tool(
        self,
        name: str | None = None,
        *,
        description: str = "",
        parameters: dict[str, Any] | None = None,
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of `register`; the function name is the default tool name."""

        def decorator(fn: ToolHandler) -> ToolHandler:
            self.register(
                name or fn.__name__,
                fn,
                description=description or (inspect.getdoc(fn) or ""),
                parameters=parameters,
            )
            return fn

        return decorator

    def mcp_tool(self, config: dict[str, Any]) -> None:
        tool = {"type": "mcp", **config}
        validate_tools([tool], intent="tools")
        self._mcp.append(tool)

    def definitions(self) -> list[dict[str, Any]]:
        """Tool list suitable for `session.update` or a response config."""
        out: list[dict[str, Any]] = [
            {
                "type": "function",
                "name": entry.name,
                "description": entry.description,
                "parameters": entry.parameters,
            }
            for entry in self._tools.values()
        ]
        out.extend(dict(tool) for tool in self._mcp)
        return out

    async def dispatch(self, call: ToolCall) -> ToolResult:
        entry = self._tools.get(call.name)
        if entry is None:
            raise InvalidIntent("tool", f"unknown tool: {call.name}")
        result = entry.handler(call.arguments)
        if inspect.isawaitable(result):
            result = await result
        return ToolResult(call_id=call.call_id, output=result)


__all__ = ["ToolCall", "ToolHandler", "ToolRegistry", "ToolResult"]

from .registry import ToolCall, ToolResult, ToolRegistry

__all__ = ["ToolCall", "ToolRegistry", "ToolResult"]

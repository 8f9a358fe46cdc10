from .registry import ToolDefinition, ToolRegistry

__all__ = ["ToolDefinition", "ToolRegistry"]

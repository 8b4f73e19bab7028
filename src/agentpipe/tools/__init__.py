"""Agent tool interfaces.

This module provides the registry that holds tool handlers and dispatches the tool calls requested by the backend.
"""

from .registry import ToolRegistry, find_unanswered_tool_call

__all__ = ["ToolRegistry", "find_unanswered_tool_call"]

"""Central registry for agent tools and the middleware that dispatches their calls.

The `ToolRegistry` holds named handlers together with their declarations. Wrapped around a completion function it
acts as the tool dispatcher: whenever the conversation contains a tool call that has not been answered yet, it
executes exactly one call and returns the result as a tool message instead of calling onward. When every call has
been answered, it advertises its declarations to the rest of the chain.
"""

import logging
from typing import Any, Optional

from ..types.cancellation import Context
from ..types.content import Message, Role, ToolCall
from ..types.tools import CompletionFunc, ToolDef, ToolHandler

logger = logging.getLogger(__name__)


def find_unanswered_tool_call(messages: list[Message]) -> Optional[ToolCall]:
    """Find the oldest tool call without a matching tool result.

    Calls are searched in conversation order across every assistant message, so that several calls issued in a single
    turn are answered in the order they were issued.

    Args:
        messages: The conversation history.

    Returns:
        The first unanswered call, or None if every call has a result.
    """
    answered = {message.tool_call_id for message in messages if message.role is Role.TOOL and message.tool_call_id}

    for message in messages:
        if message.role is not Role.ASSISTANT:
            continue
        for tool_call in message.tool_calls:
            if tool_call.id not in answered:
                return tool_call

    return None


class ToolRegistry:
    """Contains the collection of tools available to an agent.

    Provides methods for adding, reading, removing and listing tools, and implements the `Middleware` protocol so it
    can be installed in an agent pipeline.

    Example:
        ```python
        tools = ToolRegistry()
        tools.add("clock", "Tell the current time", {"type": "object", "properties": {}}, clock)

        agent = Agent(completion, tools=tools)
        ```
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._handlers: dict[str, ToolHandler] = {}
        self._tool_defs: list[ToolDef] = []

    def add(self, name: str, description: str, parameters: Any, handler: ToolHandler) -> None:
        """Register a tool.

        Args:
            name: Unique tool name.
            description: Description advertised to the backend.
            parameters: Backend-specific argument schema.
            handler: Function executing the tool.

        Raises:
            ValueError: If the name is empty or a tool with that name already exists.
        """
        if not name:
            raise ValueError("Tool name cannot be empty")
        if name in self._handlers:
            raise ValueError(f"Tool '{name}' already exists")

        self._tool_defs.append(ToolDef(name=name, description=description, parameters=parameters))
        self._handlers[name] = handler
        logger.debug("tool_name=<%s> | registered tool", name)

    def add_tools(self, other: "ToolRegistry") -> None:
        """Register every tool of another registry, preserving its declaration order.

        Args:
            other: Registry whose tools are added.

        Raises:
            ValueError: If any of the tools is already registered.
        """
        for tool_def in other._tool_defs:
            name = tool_def["name"]
            self.add(name, tool_def["description"], tool_def["parameters"], other._handlers[name])

    def remove(self, name: str) -> None:
        """Remove a tool.

        Args:
            name: Name of the tool to remove.

        Raises:
            ValueError: If the tool does not exist.
        """
        if name not in self._handlers:
            raise ValueError(f"Tool '{name}' not found in registry")

        del self._handlers[name]
        self._tool_defs = [tool_def for tool_def in self._tool_defs if tool_def["name"] != name]
        logger.debug("tool_name=<%s> | removed tool", name)

    def get_tool_def(self, name: str) -> ToolDef:
        """Read a single tool declaration.

        Args:
            name: Name of the tool.

        Returns:
            A copy of the declaration.

        Raises:
            ValueError: If the tool does not exist.
        """
        for tool_def in self._tool_defs:
            if tool_def["name"] == name:
                return ToolDef(
                    name=tool_def["name"], description=tool_def["description"], parameters=tool_def["parameters"]
                )
        raise ValueError(f"Tool '{name}' not found in registry")

    def get_handler(self, name: str) -> ToolHandler:
        """Return the handler of a tool.

        Raises:
            ValueError: If the tool does not exist.
        """
        if name not in self._handlers:
            raise ValueError(f"Tool '{name}' not found in registry")
        return self._handlers[name]

    def replace_handler(self, name: str, handler: ToolHandler) -> None:
        """Swap the handler of an existing tool, keeping its declaration.

        Raises:
            ValueError: If the tool does not exist.
        """
        if name not in self._handlers:
            raise ValueError(f"Tool '{name}' not found in registry")
        self._handlers[name] = handler

    @property
    def tool_defs(self) -> list[ToolDef]:
        """Declarations of all registered tools, in registration order."""
        return list(self._tool_defs)

    @property
    def tool_names(self) -> list[str]:
        """Names of all registered tools, in registration order."""
        return [tool_def["name"] for tool_def in self._tool_defs]

    def __contains__(self, name: object) -> bool:
        """Check if a tool with the given name is registered."""
        return name in self._handlers

    def __len__(self) -> int:
        """Return the number of registered tools."""
        return len(self._tool_defs)

    def copy(self) -> "ToolRegistry":
        """Create an independent registry with the same tools."""
        registry = ToolRegistry()
        registry.add_tools(self)
        return registry

    def call(self, ctx: Context, tool_call: ToolCall) -> Message:
        """Execute a tool call and wrap its result as a tool message.

        An unknown tool name is a normal outcome reported back to the conversation, not a failure.

        Args:
            ctx: Step context handed to the handler.
            tool_call: The call to execute.

        Returns:
            The tool message answering the call.

        Raises:
            Exception: Whatever the handler raises, unchanged.
        """
        handler = self._handlers.get(tool_call.name)
        if handler is None:
            logger.warning("tool_name=<%s>, tool_call_id=<%s> | tool not found", tool_call.name, tool_call.id)
            return Message.tool_result(tool_call, f"tool not found: {tool_call.name}")

        logger.debug("tool_name=<%s>, tool_call_id=<%s> | invoking tool", tool_call.name, tool_call.id)
        result = handler(ctx, tool_call.arguments)
        return Message.tool_result(tool_call, result)

    def wrap(self, next_step: CompletionFunc) -> CompletionFunc:
        """Install the registry as the tool dispatcher in front of `next_step`.

        Args:
            next_step: The rest of the chain.

        Returns:
            A completion function that answers pending tool calls or forwards with this registry's declarations.
        """

        def completion(ctx: Context, messages: list[Message], tool_defs: list[ToolDef]) -> Optional[Message]:
            tool_call = find_unanswered_tool_call(messages)
            if tool_call is not None:
                return self.call(ctx, tool_call)

            return next_step(ctx, messages, [*tool_defs, *self._tool_defs])

        return completion

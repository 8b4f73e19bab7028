"""Tool and completion-function type definitions.

These are the functional contracts every pipeline stage is built on:

- a completion function turns a message history and the advertised tool declarations into the next message;
- a middleware function decorates a completion function, producing another one;
- a tool handler turns a serialized argument payload into a serialized result.
"""

from typing import Any, Callable, Optional, Protocol, runtime_checkable

from typing_extensions import TypedDict

from .cancellation import Context
from .content import Message


class ToolDef(TypedDict):
    """A tool declaration advertised to the backend.

    Attributes:
        name: Unique tool name.
        description: Human readable description used by the backend to decide when to call the tool.
        parameters: Backend-specific schema of the argument payload. Opaque to the pipeline.
    """

    name: str
    description: str
    parameters: Any


CompletionFunc = Callable[[Context, list[Message], list[ToolDef]], Optional[Message]]
"""Produces the next message for a history and tool declarations. None means "no new message this turn"."""

MiddlewareFunc = Callable[[CompletionFunc], CompletionFunc]
"""Wraps a completion function with additional behavior."""

ToolHandler = Callable[[Context, str], str]
"""Executes a tool: called with the context and the serialized arguments, returns the serialized result."""


@runtime_checkable
class Middleware(Protocol):
    """Protocol for objects that wrap a completion function.

    Example:
        ```python
        class Logged:
            def wrap(self, next_step: CompletionFunc) -> CompletionFunc:
                def completion(ctx, messages, tool_defs):
                    logger.info("message_count=<%d> | calling backend", len(messages))
                    return next_step(ctx, messages, tool_defs)

                return completion
        ```
    """

    def wrap(self, next_step: CompletionFunc) -> CompletionFunc:
        """Return a completion function that runs this stage around `next_step`.

        Args:
            next_step: The rest of the chain.

        Returns:
            The decorated completion function.
        """
        ...

"""Filters transform the message list before it reaches the backend.

Filters run in configuration order, each one seeing the previous one's output. The first filter that raises aborts
the step with a `FilterError`; later filters and the backend never run.
"""

import logging
import re
from typing import Callable, Optional, Sequence, Union

from ..types.cancellation import Context
from ..types.content import Message, Role
from ..types.exceptions import ContextCancelledError, FilterError
from ..types.tools import CompletionFunc, MiddlewareFunc, ToolDef

logger = logging.getLogger(__name__)

FilterFunc = Callable[[Context, list[Message]], list[Message]]
"""Transforms the message list handed to the rest of the chain."""


def filter_stage(filters: Sequence[FilterFunc]) -> MiddlewareFunc:
    """Build the middleware that applies filters in order.

    Args:
        filters: Filters to apply, first one first.

    Returns:
        A middleware function running the filters before the wrapped completion function.
    """
    filters = list(filters)

    def middleware(next_step: CompletionFunc) -> CompletionFunc:
        def completion(ctx: Context, messages: list[Message], tool_defs: list[ToolDef]) -> Optional[Message]:
            filtered = messages
            for index, message_filter in enumerate(filters):
                try:
                    filtered = message_filter(ctx, filtered)
                except ContextCancelledError:
                    raise
                except Exception as e:
                    logger.debug("filter_index=<%d> | filter failed", index, exc_info=True)
                    raise FilterError(index, e) from e

            return next_step(ctx, filtered, tool_defs)

        return completion

    return middleware


def _find_safe_window_start(messages: list[Message], start: int) -> int:
    """Move a window start back so that no tool result in the window is separated from its call.

    Args:
        messages: The messages being windowed.
        start: The initial start index based on the window size.

    Returns:
        A start index at or before `start`.
    """
    issued_at: dict[str, int] = {}
    for index, message in enumerate(messages[:start]):
        for tool_call in message.tool_calls:
            issued_at[tool_call.id] = index

    safe_start = start
    for message in messages[start:]:
        if message.role is Role.TOOL and message.tool_call_id in issued_at:
            safe_start = min(safe_start, issued_at[message.tool_call_id])

    return safe_start


def last_messages(count: int, keep_system: bool = True) -> FilterFunc:
    """Create a filter keeping only the most recent messages.

    When the window would open on tool results, it is extended back to the assistant message that issued the calls,
    so the tool dispatcher still sees calls that are waiting for an answer. The window can therefore hold more than
    `count` messages. Leading tool results whose call is not in the conversation at all are dropped.

    Args:
        count: Number of non-system messages to keep, before extension for tool calls.
        keep_system: Whether the system messages at the start of the conversation are always kept.

    Returns:
        The filter function.

    Raises:
        ValueError: If count is negative.
    """
    if count < 0:
        raise ValueError(f"count=<{count}> | message window cannot be negative")

    def window_filter(ctx: Context, messages: list[Message]) -> list[Message]:
        prefix: list[Message] = []
        rest = messages
        if keep_system:
            split = 0
            while split < len(messages) and messages[split].role is Role.SYSTEM:
                split += 1
            prefix, rest = messages[:split], messages[split:]

        if len(rest) <= count:
            return [*prefix, *rest]

        window = rest[_find_safe_window_start(rest, len(rest) - count) :]
        while window and window[0].role is Role.TOOL:
            window = window[1:]

        logger.debug(
            "message_count=<%d>, window_size=<%d> | trimmed conversation window",
            len(messages),
            len(prefix) + len(window),
        )
        return [*prefix, *window]

    return window_filter


def redact(pattern: Union[str, "re.Pattern[str]"], replacement: str = "[REDACTED]") -> FilterFunc:
    """Create a filter that masks matching text in every message.

    The conversation history is not modified: the rest of the chain receives copies whose content is redacted when
    read. That includes the tool dispatcher and the agent set, so tool handlers see the original arguments but a reply
    relayed to an active sub-agent is redacted too.

    Args:
        pattern: Regular expression to mask.
        replacement: Text substituted for every match.

    Returns:
        The filter function.
    """
    regex = re.compile(pattern)

    def redacted(message: Message) -> Message:
        def produce(ctx: Context) -> str:
            return regex.sub(replacement, message.content(ctx))

        return Message(
            message.role,
            content_fn=produce,
            images=message.images,
            tool_calls=message.tool_calls,
            tool_call_id=message.tool_call_id,
            name=message.name,
            attributes=message.attributes,
        )

    def redact_filter(ctx: Context, messages: list[Message]) -> list[Message]:
        return [redacted(message) for message in messages]

    return redact_filter

"""Checks validate the message produced by the rest of the pipeline before it joins the history.

Checks run in configuration order against the same produced message. The first check that raises aborts the step
with a `CheckError` and the message is discarded. Checks may also tag the message to signal the driver loop.
"""

import logging
from typing import Callable, Optional, Sequence

from ..types.cancellation import Context
from ..types.content import Message, Role
from ..types.exceptions import CheckError, ContextCancelledError
from ..types.tools import CompletionFunc, MiddlewareFunc, ToolDef

logger = logging.getLogger(__name__)

STOP_TAG = "stop"
"""Tag that ends `run` when present on a produced message."""

CheckFunc = Callable[[Context, Message], None]
"""Validates a produced message, raising to reject it."""


def check_stage(checks: Sequence[CheckFunc]) -> MiddlewareFunc:
    """Build the middleware that runs checks on the produced message.

    A step that produces no message is not checked.

    Args:
        checks: Checks to run, first one first.

    Returns:
        A middleware function running the checks after the wrapped completion function returns.
    """
    checks = list(checks)

    def middleware(next_step: CompletionFunc) -> CompletionFunc:
        def completion(ctx: Context, messages: list[Message], tool_defs: list[ToolDef]) -> Optional[Message]:
            message = next_step(ctx, messages, tool_defs)
            if message is None:
                return None

            for index, check in enumerate(checks):
                try:
                    check(ctx, message)
                except ContextCancelledError:
                    raise
                except Exception as e:
                    logger.debug("check_index=<%d>, role=<%s> | check failed", index, message.role.value, exc_info=True)
                    raise CheckError(index, e) from e

            return message

        return completion

    return middleware


def stop_on_reply(ctx: Context, message: Message) -> None:
    """Tag plain assistant replies so that `run` stops after them.

    Assistant messages requesting tool calls are left untagged so the tool loop continues.
    """
    if message.role is Role.ASSISTANT and not message.has_tool_calls():
        message.tag(STOP_TAG)

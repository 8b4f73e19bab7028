"""Driver loop stepping an agent until a stop condition is met."""

import logging
from typing import Callable, Optional, Protocol, runtime_checkable

from ..pipeline.checks import STOP_TAG
from ..types.cancellation import Context
from ..types.content import Message

logger = logging.getLogger(__name__)

UntilFunc = Callable[[Context, Optional[Message]], bool]
"""Decides, after each step, whether the loop is done."""


@runtime_checkable
class Stepper(Protocol):
    """Anything that can advance a conversation by one turn."""

    def step(self, ctx: Context) -> Optional[Message]:
        """Advance one turn and return the produced message, if any."""
        ...


class StepFunc:
    """Adapts a plain function to the `Stepper` protocol."""

    def __init__(self, func: Callable[[Context], Optional[Message]]) -> None:
        """Initialize the adapter.

        Args:
            func: Function called for every step.
        """
        self._func = func

    def step(self, ctx: Context) -> Optional[Message]:
        """Call the wrapped function."""
        return self._func(ctx)


def run_until(ctx: Context, stepper: Stepper, until: UntilFunc) -> None:
    """Step until `until` returns True.

    The context is checked once per iteration, before each step.

    Args:
        ctx: Cancellation and deadline context.
        stepper: The agent (or other stepper) to drive.
        until: Stop condition evaluated on every produced message, including None.

    Raises:
        ContextCancelledError: If the context is cancelled before the condition is met.
        DeadlineExceededError: If the context deadline passes before the condition is met.
        Exception: Whatever a step raises.
    """
    steps = 0
    while True:
        ctx.raise_if_done()

        message = stepper.step(ctx)
        steps += 1

        if until(ctx, message):
            logger.debug("step_count=<%d> | stop condition met", steps)
            return


def stopped(ctx: Context, message: Optional[Message]) -> bool:
    """Return True when the produced message carries the stop tag."""
    return message is not None and message.has_tag(STOP_TAG)


def run(ctx: Context, stepper: Stepper) -> None:
    """Step until a produced message carries the stop tag.

    Pair it with a check such as `stop_on_reply` that tags the message ending the run, or with a context that is
    eventually cancelled.

    Args:
        ctx: Cancellation and deadline context.
        stepper: The agent (or other stepper) to drive.

    Raises:
        ContextCancelledError: If the context is cancelled first.
        Exception: Whatever a step raises.
    """
    run_until(ctx, stepper, stopped)

"""Cancellation and deadline context threaded through every pipeline stage.

A `Context` is passed as the first argument to completion functions, filters, checks, tool handlers and content
producers. Stages call `raise_if_done()` before starting expensive work; the driver loop checks it once per iteration.
"""

import threading
import time
from typing import Callable, Optional

from .exceptions import ContextCancelledError, DeadlineExceededError


class CancellationToken:
    """Thread-safe cancellation token.

    The token can be cancelled from any thread and checked synchronously while a step runs.

    Example:
        ```python
        token = CancellationToken()

        # In another thread or external system
        token.cancel()

        if token.is_cancelled():
            ...
        ```
    """

    def __init__(self) -> None:
        """Initialize a new cancellation token."""
        self._cancelled = False
        self._lock = threading.Lock()

    def cancel(self) -> None:
        """Signal cancellation request.

        Multiple calls are safe and idempotent.
        """
        with self._lock:
            self._cancelled = True

    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested.

        Returns:
            True if cancellation has been requested, False otherwise.
        """
        with self._lock:
            return self._cancelled


class Context:
    """Cancellation-and-deadline context.

    Contexts form a tree: a derived context is done as soon as its parent is done, while cancelling a child never
    affects the parent.

    Example:
        ```python
        ctx, cancel = Context.background().with_cancel()
        timed = ctx.with_timeout(30)

        agent.step(timed)
        cancel()
        ```
    """

    def __init__(
        self,
        parent: Optional["Context"] = None,
        token: Optional[CancellationToken] = None,
        deadline: Optional[float] = None,
    ) -> None:
        """Initialize a context.

        Args:
            parent: Context this one derives from, if any.
            token: Token that cancels this context. A fresh token is created when omitted.
            deadline: Absolute `time.monotonic()` value after which the context is done.
        """
        self._parent = parent
        self._token = token if token is not None else CancellationToken()
        self._deadline = deadline

    @classmethod
    def background(cls) -> "Context":
        """Return a root context that is never cancelled and has no deadline."""
        return cls()

    def with_cancel(self) -> tuple["Context", Callable[[], None]]:
        """Derive a child context together with the function that cancels it.

        Returns:
            The child context and a zero-argument cancel function.
        """
        child = Context(parent=self)
        return child, child._token.cancel

    def with_deadline(self, deadline: float) -> "Context":
        """Derive a child context that is done at the given monotonic time.

        The earlier of the parent's and the given deadline wins.

        Args:
            deadline: Absolute `time.monotonic()` value.

        Returns:
            The child context.
        """
        parent_deadline = self.deadline
        if parent_deadline is not None:
            deadline = min(deadline, parent_deadline)
        return Context(parent=self, deadline=deadline)

    def with_timeout(self, seconds: float) -> "Context":
        """Derive a child context that is done after the given number of seconds.

        Args:
            seconds: Timeout relative to now.

        Returns:
            The child context.
        """
        return self.with_deadline(time.monotonic() + seconds)

    @property
    def deadline(self) -> Optional[float]:
        """The effective monotonic deadline of this context, if any."""
        parent_deadline = self._parent.deadline if self._parent is not None else None
        if self._deadline is None:
            return parent_deadline
        if parent_deadline is None:
            return self._deadline
        return min(self._deadline, parent_deadline)

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._token.cancel()

    def err(self) -> Optional[ContextCancelledError]:
        """Return the reason this context is done, or None while it is still live.

        Returns:
            A `ContextCancelledError` for explicit cancellation, a `DeadlineExceededError` once the deadline passed,
            None otherwise.
        """
        if self._token.is_cancelled():
            return ContextCancelledError("context canceled")

        deadline = self.deadline
        if deadline is not None and time.monotonic() >= deadline:
            return DeadlineExceededError("context deadline exceeded")

        if self._parent is not None:
            return self._parent.err()

        return None

    def done(self) -> bool:
        """Check whether the context is cancelled or past its deadline."""
        return self.err() is not None

    def raise_if_done(self) -> None:
        """Raise the cancellation error if the context is done.

        Raises:
            ContextCancelledError: If the context was cancelled.
            DeadlineExceededError: If the deadline passed.
        """
        error = self.err()
        if error is not None:
            raise error

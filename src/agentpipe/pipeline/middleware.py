"""Middleware composition helpers."""

from typing import Iterable, Union

from ..types.tools import CompletionFunc, Middleware, MiddlewareFunc

MiddlewareLike = Union[Middleware, MiddlewareFunc]
"""Either an object with a `wrap` method or a plain `(next) -> completion` function."""


def as_middleware_func(middleware: MiddlewareLike) -> MiddlewareFunc:
    """Normalize a middleware object or function into a middleware function.

    Args:
        middleware: The middleware to normalize.

    Returns:
        A function wrapping a completion function.

    Raises:
        TypeError: If the value is neither a `Middleware` nor callable.
    """
    if isinstance(middleware, Middleware):
        return middleware.wrap
    if callable(middleware):
        return middleware
    raise TypeError(f"middleware=<{middleware!r}> | expected a Middleware or a callable")


def compose(completion: CompletionFunc, middleware: Iterable[MiddlewareLike]) -> CompletionFunc:
    """Wrap a completion function with middleware in order.

    The first middleware ends up closest to `completion`; the last one is the outermost and sees the request first.

    Args:
        completion: The innermost completion function.
        middleware: Middleware to apply, innermost first.

    Returns:
        The wrapped completion function.
    """
    for item in middleware:
        completion = as_middleware_func(item)(completion)
    return completion

"""Pipeline stages wrapped around the backend completion function.

This package provides the middleware composition helpers together with the filter and check stages and a few
ready-made filters and checks.
"""

from .checks import STOP_TAG, CheckFunc, check_stage, stop_on_reply
from .filters import FilterFunc, filter_stage, last_messages, redact
from .middleware import MiddlewareLike, as_middleware_func, compose

__all__ = [
    "STOP_TAG",
    "CheckFunc",
    "FilterFunc",
    "MiddlewareLike",
    "as_middleware_func",
    "check_stage",
    "compose",
    "filter_stage",
    "last_messages",
    "redact",
    "stop_on_reply",
]

"""Pipeline type definitions."""

from .cancellation import CancellationToken, Context
from .content import ContentProducer, Image, Message, Messages, Role, ToolCall
from .exceptions import (
    CheckError,
    ContextCancelledError,
    ConversationFormatError,
    DeadlineExceededError,
    DelegationError,
    FilterError,
)
from .tools import CompletionFunc, Middleware, MiddlewareFunc, ToolDef, ToolHandler

__all__ = [
    "CancellationToken",
    "CheckError",
    "CompletionFunc",
    "ContentProducer",
    "Context",
    "ContextCancelledError",
    "ConversationFormatError",
    "DeadlineExceededError",
    "DelegationError",
    "FilterError",
    "Image",
    "Message",
    "Messages",
    "Middleware",
    "MiddlewareFunc",
    "Role",
    "ToolCall",
    "ToolDef",
    "ToolHandler",
]

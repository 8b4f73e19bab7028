"""Content-related type definitions for the pipeline.

A `Message` is one turn of a conversation. Its content is either a literal string or a deferred producer that is
evaluated each time the content is read. Messages also carry image attachments, tool calls (assistant turns only), the
id of the call a tool result answers, and a free-form attribute map that doubles as a tag set.
"""

import copy
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .cancellation import Context

ContentProducer = Callable[[Context], str]
"""Deferred content: called with the read context, returns the content or raises."""


class Role(str, Enum):
    """Author of a message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"

    # Deprecated alias of TOOL kept for conversations recorded with function-calling backends.
    FUNCTION = "tool"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Role"]:
        if value == "function":
            return cls.TOOL
        return None


@dataclass(frozen=True)
class Image:
    """A named binary image attached to a message.

    Attributes:
        name: File name or label of the image.
        data: Raw image bytes.
    """

    name: str
    data: bytes


@dataclass(frozen=True)
class ToolCall:
    """A request, embedded in an assistant message, to invoke a named tool.

    Attributes:
        id: Identifier correlating the call with its tool result message.
        name: Name of the requested tool.
        arguments: Serialized argument payload, opaque to the pipeline.
    """

    id: str
    name: str
    arguments: str = ""


class Message:
    """One turn of a conversation.

    Messages are owned by the agent history and treated as immutable once appended, with the exception of the
    tag/attribute mutators which checks use to mark control signals on messages they have just validated.

    Example:
        ```python
        msg = Message(Role.USER, "What is the weather?")
        msg.content()  # "What is the weather?"

        clock = Message.dynamic(Role.SYSTEM, lambda ctx: f"The time is {datetime.now():%H:%M}")
        ```
    """

    def __init__(
        self,
        role: Role,
        content: str = "",
        *,
        content_fn: Optional[ContentProducer] = None,
        images: Optional[list[Image]] = None,
        tool_calls: Optional[list[ToolCall]] = None,
        tool_call_id: Optional[str] = None,
        name: Optional[str] = None,
        attributes: Optional[dict[str, Optional[str]]] = None,
    ) -> None:
        """Initialize a message.

        Args:
            role: Author of the message.
            content: Literal content. Ignored when `content_fn` is given.
            content_fn: Deferred content producer evaluated on every read.
            images: Image attachments, in order.
            tool_calls: Tool calls requested by the assistant, in order.
            tool_call_id: For tool results, the id of the call being answered.
            name: Optional author or tool name.
            attributes: Initial attributes. A key mapped to None is a tag.

        Raises:
            ValueError: If tool calls are given for a non-assistant message.
        """
        role = Role(role)
        if tool_calls and role is not Role.ASSISTANT:
            raise ValueError(f"role=<{role.value}> | only assistant messages may carry tool calls")

        self.role = role
        self._content = content
        self._content_fn = content_fn
        self._images: list[Image] = list(images) if images else []
        self.tool_calls: list[ToolCall] = list(tool_calls) if tool_calls else []
        self.tool_call_id = tool_call_id
        self.name = name
        self._attributes: dict[str, Optional[str]] = dict(attributes) if attributes else {}

    @classmethod
    def dynamic(cls, role: Role, content_fn: ContentProducer) -> "Message":
        """Create a message whose content is produced when read."""
        return cls(role, content_fn=content_fn)

    @classmethod
    def with_image(cls, role: Role, content: str, image_name: str, image_data: bytes) -> "Message":
        """Create a message with text content and one image attachment."""
        return cls(role, content, images=[Image(name=image_name, data=image_data)])

    @classmethod
    def tool_result(cls, tool_call: ToolCall, content: str) -> "Message":
        """Create the tool message answering the given call."""
        return cls(Role.TOOL, content, tool_call_id=tool_call.id, name=tool_call.name)

    @property
    def is_dynamic(self) -> bool:
        """Whether content is produced on read rather than stored."""
        return self._content_fn is not None

    def content(self, ctx: Optional[Context] = None) -> str:
        """Resolve the message content.

        Args:
            ctx: Context handed to a deferred producer. Defaults to a background context.

        Returns:
            The literal content, or the producer's output.

        Raises:
            Exception: Whatever the deferred producer raises.
        """
        if self._content_fn is not None:
            return self._content_fn(ctx if ctx is not None else Context.background())
        return self._content

    @property
    def images(self) -> list[Image]:
        """A copy of the attached images."""
        return list(self._images)

    def add_image(self, name: str, data: bytes) -> None:
        """Attach an image to the message."""
        self._images.append(Image(name=name, data=data))

    def has_tool_calls(self) -> bool:
        """Check if the message requests at least one tool call."""
        return len(self.tool_calls) > 0

    def first_tool_call(self) -> Optional[ToolCall]:
        """Return the first tool call, or None if there is none."""
        if self.tool_calls:
            return self.tool_calls[0]
        return None

    @property
    def attributes(self) -> dict[str, Optional[str]]:
        """A copy of the attribute map."""
        return dict(self._attributes)

    def set_attr(self, key: str, value: str) -> None:
        """Set a key/value attribute."""
        self._attributes[key] = value

    def get_attr(self, key: str) -> Optional[str]:
        """Return an attribute value, or None when unset or a bare tag."""
        return self._attributes.get(key)

    def tag(self, key: str) -> None:
        """Mark the message with a value-less tag."""
        self._attributes[key] = None

    def clear_tag(self, key: str) -> None:
        """Remove a tag or attribute. Missing keys are ignored."""
        self._attributes.pop(key, None)

    def has_tag(self, key: str) -> bool:
        """Check if a tag or attribute is present."""
        return key in self._attributes

    def copy(self) -> "Message":
        """Copy the message for a forked agent.

        Tool calls, images and attributes are copied; the content producer is shared since it is stateless.

        Returns:
            An independent message equal to this one.
        """
        return Message(
            self.role,
            self._content,
            content_fn=self._content_fn,
            images=copy.deepcopy(self._images),
            tool_calls=copy.deepcopy(self.tool_calls),
            tool_call_id=self.tool_call_id,
            name=self.name,
            attributes=copy.deepcopy(self._attributes),
        )

    def __repr__(self) -> str:
        """Return a debug representation without evaluating deferred content."""
        content = "<dynamic>" if self._content_fn is not None else repr(self._content)
        parts = [f"role={self.role.value}", f"content={content}"]
        if self.tool_calls:
            parts.append(f"tool_calls={self.tool_calls!r}")
        if self.tool_call_id is not None:
            parts.append(f"tool_call_id={self.tool_call_id!r}")
        if self._images:
            parts.append(f"images={len(self._images)}")
        if self._attributes:
            parts.append(f"attributes={self._attributes!r}")
        return f"Message({', '.join(parts)})"


Messages = list[Message]
"""A list of messages representing a conversation."""

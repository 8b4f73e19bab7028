"""YAML export and import of conversations.

Each message becomes a mapping with `Role` and `Content` keys, plus `Images` when it carries attachments (image data
is base64 encoded). Tool calls, the answered call id and attributes are exported too, but their round trip is best
effort: deferred content is resolved at export time and imported back as literal content.

Example:
    ```python
    document = export_messages_to_yaml(agent.messages)
    restored = Agent(completion, messages=import_messages_from_yaml(document))
    ```
"""

import base64
import binascii
import logging
from typing import Any, Iterable, Optional

import yaml

from ..types.cancellation import Context
from ..types.content import Image, Message, Role, ToolCall
from ..types.exceptions import ConversationFormatError

logger = logging.getLogger(__name__)


def _export_message(ctx: Context, message: Message) -> dict[str, Any]:
    exported: dict[str, Any] = {"Role": message.role.value, "Content": message.content(ctx)}

    images = message.images
    if images:
        exported["Images"] = [
            {"name": image.name, "data": base64.b64encode(image.data).decode("ascii")} for image in images
        ]

    if message.tool_calls:
        exported["ToolCalls"] = [
            {"id": call.id, "name": call.name, "arguments": call.arguments} for call in message.tool_calls
        ]

    if message.tool_call_id is not None:
        exported["ToolCallID"] = message.tool_call_id

    attributes = message.attributes
    if attributes:
        exported["Attributes"] = attributes

    return exported


def export_messages_to_yaml(messages: Iterable[Message], ctx: Optional[Context] = None) -> str:
    """Serialize a conversation to a YAML document.

    Args:
        messages: Messages to export, in order.
        ctx: Context used to resolve deferred content. Defaults to a background context.

    Returns:
        The YAML document.

    Raises:
        Exception: Whatever a deferred content producer raises.
    """
    ctx = ctx if ctx is not None else Context.background()
    exported = [_export_message(ctx, message) for message in messages]
    logger.debug("message_count=<%d> | exporting conversation", len(exported))
    return yaml.safe_dump(exported, sort_keys=False, allow_unicode=True)


def _import_message(position: int, entry: Any) -> Message:
    if not isinstance(entry, dict):
        raise ConversationFormatError(f"message=<{position}> | expected a mapping")

    try:
        role = Role(entry["Role"])
    except KeyError as e:
        raise ConversationFormatError(f"message=<{position}> | missing Role") from e
    except ValueError as e:
        raise ConversationFormatError(f"message=<{position}> | unknown role {entry['Role']!r}") from e

    content = entry.get("Content") or ""
    if not isinstance(content, str):
        raise ConversationFormatError(f"message=<{position}> | Content must be a string")

    try:
        images = [
            Image(name=str(image["name"]), data=base64.b64decode(image["data"], validate=True))
            for image in entry.get("Images") or []
        ]
    except (KeyError, TypeError, binascii.Error) as e:
        raise ConversationFormatError(f"message=<{position}> | invalid image: {e}") from e

    try:
        tool_calls = [
            ToolCall(id=str(call["id"]), name=str(call["name"]), arguments=str(call.get("arguments") or ""))
            for call in entry.get("ToolCalls") or []
        ]
    except (KeyError, TypeError, AttributeError) as e:
        raise ConversationFormatError(f"message=<{position}> | invalid tool call: {e}") from e

    attributes = entry.get("Attributes") or {}
    if not isinstance(attributes, dict):
        raise ConversationFormatError(f"message=<{position}> | Attributes must be a mapping")

    try:
        return Message(
            role,
            content,
            images=images,
            tool_calls=tool_calls,
            tool_call_id=entry.get("ToolCallID"),
            attributes={str(key): None if value is None else str(value) for key, value in attributes.items()},
        )
    except ValueError as e:
        raise ConversationFormatError(f"message=<{position}> | {e}") from e


def import_messages_from_yaml(document: str) -> list[Message]:
    """Parse a conversation exported by `export_messages_to_yaml`.

    Args:
        document: The YAML document.

    Returns:
        The messages, in order.

    Raises:
        ConversationFormatError: If the document is not valid YAML or does not describe a conversation.
    """
    try:
        entries = yaml.safe_load(document)
    except yaml.YAMLError as e:
        raise ConversationFormatError(f"invalid YAML: {e}") from e

    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ConversationFormatError("expected a list of messages")

    messages = [_import_message(position, entry) for position, entry in enumerate(entries)]
    logger.debug("message_count=<%d> | imported conversation", len(messages))
    return messages

"""Conversation export and import."""

from .yaml_conversation import export_messages_to_yaml, import_messages_from_yaml

__all__ = ["export_messages_to_yaml", "import_messages_from_yaml"]

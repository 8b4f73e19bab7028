"""Agent configuration loaded from a JSON file or a dictionary.

Recognized keys:

- `name`: agent name used in logs and spans
- `system_prompt`: content of the system message seeding the conversation
- `message_window`: number of recent messages sent to the backend (installs a `last_messages` filter)
- `stop_on_reply`: whether plain assistant replies end `run` (installs the `stop_on_reply` check)
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union


class AgentConfig:
    """Parser for agent configuration files."""

    def __init__(self, config_source: Union[str, Path, Dict[str, Any]]):
        """Initialize agent configuration.

        Args:
            config_source: Path to JSON config file or config dictionary

        Raises:
            ValueError: If the source has the wrong type or a value is invalid.
        """
        if isinstance(config_source, (str, Path)):
            self.config = self._load_from_file(config_source)
        elif isinstance(config_source, dict):
            self.config = config_source.copy()
        else:
            raise ValueError("config_source must be a file path string or dictionary")

        self._validate()

    def _load_from_file(self, file_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file.

        Args:
            file_path: Path to the configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            json.JSONDecodeError: If config file contains invalid JSON
        """
        path = Path(file_path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Agent config file not found: {file_path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError(f"Config file {file_path} must contain a JSON object")
                return data
        except json.JSONDecodeError as e:
            raise json.JSONDecodeError(f"Invalid JSON in config file {file_path}: {e.msg}", e.doc, e.pos) from e

    def _validate(self) -> None:
        window = self.config.get("message_window")
        if window is not None and (isinstance(window, bool) or not isinstance(window, int) or window < 0):
            raise ValueError(f"message_window=<{window}> | must be a non-negative integer")

        stop = self.config.get("stop_on_reply", False)
        if not isinstance(stop, bool):
            raise ValueError(f"stop_on_reply=<{stop}> | must be a boolean")

    @property
    def name(self) -> Optional[str]:
        """Get agent name."""
        return self.config.get("name")

    @property
    def system_prompt(self) -> Optional[str]:
        """Get system prompt."""
        return self.config.get("system_prompt")

    @property
    def message_window(self) -> Optional[int]:
        """Get the number of recent messages sent to the backend."""
        return self.config.get("message_window")

    @property
    def stop_on_reply(self) -> bool:
        """Get whether plain assistant replies stop the driver loop."""
        return bool(self.config.get("stop_on_reply", False))

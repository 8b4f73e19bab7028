"""Exception-related type definitions for the pipeline.

Only stage failures that the pipeline itself detects are wrapped. Tool handler and backend exceptions propagate
unchanged; a missing tool or sub-agent is reported as ordinary message content, never as an exception.
"""


class FilterError(Exception):
    """Raised when a filter fails before the message list reaches the backend.

    Nothing is appended to the conversation history and no later stage runs.
    """

    def __init__(self, index: int, cause: BaseException) -> None:
        """Initialize exception.

        Args:
            index: Zero-based position of the failing filter in configuration order.
            cause: The exception the filter raised.
        """
        self.index = index
        self.cause = cause
        super().__init__(f"filter failed: {cause}")


class CheckError(Exception):
    """Raised when a check rejects the message produced by the rest of the pipeline.

    The produced message is discarded rather than appended to the conversation history.
    """

    def __init__(self, index: int, cause: BaseException) -> None:
        """Initialize exception.

        Args:
            index: Zero-based position of the failing check in configuration order.
            cause: The exception the check raised.
        """
        self.index = index
        self.cause = cause
        super().__init__(f"check failed: {cause}")


class ContextCancelledError(Exception):
    """Raised when the step context was cancelled."""

    pass


class DeadlineExceededError(ContextCancelledError):
    """Raised when the step context passed its deadline."""

    pass


class DelegationError(Exception):
    """Raised when the active sub-agent fails to complete its step."""

    def __init__(self, agent_name: str, cause: BaseException) -> None:
        """Initialize exception.

        Args:
            agent_name: Name of the sub-agent that failed.
            cause: The exception raised by the sub-agent step.
        """
        self.agent_name = agent_name
        self.cause = cause
        super().__init__(f"error running agent: {cause}")


class ConversationFormatError(ValueError):
    """Raised when an exported conversation document cannot be imported."""

    pass

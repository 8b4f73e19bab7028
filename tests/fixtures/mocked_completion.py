"""Scripted completion backend for tests."""

from typing import Optional, Union

from agentpipe.types.cancellation import Context
from agentpipe.types.content import Message, Role, ToolCall
from agentpipe.types.tools import ToolDef

Response = Union[Message, None, Exception]


def assistant_reply(text: str) -> Message:
    """Create a plain assistant reply."""
    return Message(Role.ASSISTANT, text)


def tool_call_reply(*calls: tuple[str, str, str], text: str = "") -> Message:
    """Create an assistant reply requesting the given `(id, name, arguments)` tool calls."""
    return Message(
        Role.ASSISTANT,
        text,
        tool_calls=[ToolCall(id=call_id, name=name, arguments=arguments) for call_id, name, arguments in calls],
    )


class MockedCompletion:
    """Completion function returning scripted responses and recording every call.

    Responses are consumed in order. An exception in the script is raised instead of returned. Once the script is
    exhausted, every call returns a fresh "default reply" assistant message.
    """

    def __init__(self, responses: Optional[list[Response]] = None) -> None:
        self.responses: list[Response] = list(responses) if responses else []
        self.calls: list[tuple[list[Message], list[ToolDef]]] = []

    def __call__(self, ctx: Context, messages: list[Message], tool_defs: list[ToolDef]) -> Optional[Message]:
        self.calls.append((list(messages), list(tool_defs)))

        if not self.responses:
            return assistant_reply("default reply")

        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def last_messages(self) -> list[Message]:
        return self.calls[-1][0]

    @property
    def last_tool_defs(self) -> list[ToolDef]:
        return self.calls[-1][1]

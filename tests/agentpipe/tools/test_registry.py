"""Tests for the tool registry and dispatcher."""

import pytest

from agentpipe.tools.registry import ToolRegistry, find_unanswered_tool_call
from agentpipe.types.content import Message, Role, ToolCall
from fixtures.mocked_completion import MockedCompletion, assistant_reply, tool_call_reply

EMPTY_SCHEMA = {"type": "object", "properties": {}}


def hello(ctx, arguments):
    return "Hello world!"


@pytest.fixture
def registry():
    tools = ToolRegistry()
    tools.add("hello", "Say hello", EMPTY_SCHEMA, hello)
    return tools


def test_add_and_read(registry):
    assert "hello" in registry
    assert len(registry) == 1
    assert registry.tool_names == ["hello"]
    assert registry.get_tool_def("hello") == {"name": "hello", "description": "Say hello", "parameters": EMPTY_SCHEMA}
    assert registry.get_handler("hello") is hello


def test_add_duplicate_raises(registry):
    with pytest.raises(ValueError, match="Tool 'hello' already exists"):
        registry.add("hello", "again", EMPTY_SCHEMA, hello)


def test_add_empty_name_raises():
    with pytest.raises(ValueError, match="Tool name cannot be empty"):
        ToolRegistry().add("", "nameless", EMPTY_SCHEMA, hello)


def test_remove(registry):
    registry.remove("hello")

    assert "hello" not in registry
    assert registry.tool_defs == []


def test_remove_missing_raises(registry):
    with pytest.raises(ValueError, match="not found in registry"):
        registry.remove("missing")


def test_get_tool_def_missing_raises(registry):
    with pytest.raises(ValueError, match="not found in registry"):
        registry.get_tool_def("missing")


def test_replace_handler_keeps_declaration(registry, ctx):
    registry.replace_handler("hello", lambda ctx, arguments: "Bonjour!")

    assert registry.tool_names == ["hello"]
    assert registry.call(ctx, ToolCall(id="1", name="hello")).content() == "Bonjour!"


def test_add_tools_uses_source_handlers(registry, ctx):
    combined = ToolRegistry()
    combined.add("first", "First tool", EMPTY_SCHEMA, lambda ctx, arguments: "first")
    combined.add_tools(registry)

    assert combined.tool_names == ["first", "hello"]
    assert combined.call(ctx, ToolCall(id="1", name="hello")).content() == "Hello world!"


def test_copy_is_independent(registry):
    copied = registry.copy()
    copied.add("extra", "Extra tool", EMPTY_SCHEMA, hello)

    assert "extra" not in registry
    assert copied.tool_names == ["hello", "extra"]


def test_call_wraps_result(registry, ctx):
    message = registry.call(ctx, ToolCall(id="call-1", name="hello", arguments="{}"))

    assert message.role is Role.TOOL
    assert message.tool_call_id == "call-1"
    assert message.content() == "Hello world!"


def test_call_passes_context_and_arguments(ctx):
    received = []
    tools = ToolRegistry()
    tools.add("echo", "Echo", EMPTY_SCHEMA, lambda c, arguments: received.append((c, arguments)) or arguments)

    message = tools.call(ctx, ToolCall(id="1", name="echo", arguments='{"text": "hi"}'))

    assert received == [(ctx, '{"text": "hi"}')]
    assert message.content() == '{"text": "hi"}'


def test_call_unknown_tool_is_not_an_error(registry, ctx):
    message = registry.call(ctx, ToolCall(id="call-9", name="worldDomination", arguments="{}"))

    assert message.content() == "tool not found: worldDomination"
    assert message.tool_call_id == "call-9"


def test_call_handler_error_propagates_unwrapped(ctx):
    error = RuntimeError("tool exploded")

    def explode(ctx, arguments):
        raise error

    tools = ToolRegistry()
    tools.add("explode", "Explode", EMPTY_SCHEMA, explode)

    with pytest.raises(RuntimeError) as excinfo:
        tools.call(ctx, ToolCall(id="1", name="explode"))

    assert excinfo.value is error


def test_find_unanswered_tool_call_in_issue_order():
    messages = [
        Message(Role.USER, "time and weather?"),
        tool_call_reply(("c1", "clock", "{}"), ("c2", "weather", "{}")),
    ]

    assert find_unanswered_tool_call(messages).id == "c1"

    messages.append(Message(Role.TOOL, "12:00", tool_call_id="c1"))
    assert find_unanswered_tool_call(messages).id == "c2"

    messages.append(Message(Role.TOOL, "sunny", tool_call_id="c2"))
    assert find_unanswered_tool_call(messages) is None


def test_find_unanswered_tool_call_searches_older_assistant_messages():
    messages = [
        tool_call_reply(("old", "clock", "{}")),
        Message(Role.USER, "also this"),
        tool_call_reply(("new", "weather", "{}")),
        Message(Role.TOOL, "sunny", tool_call_id="new"),
    ]

    assert find_unanswered_tool_call(messages).id == "old"


def test_dispatcher_answers_calls_in_order_then_forwards(ctx):
    tools = ToolRegistry()
    tools.add("clock", "Tell the time", EMPTY_SCHEMA, lambda ctx, arguments: "12:00")
    tools.add("weather", "Tell the weather", EMPTY_SCHEMA, lambda ctx, arguments: "sunny")
    backend = MockedCompletion([assistant_reply("It is noon and sunny.")])
    completion = tools.wrap(backend)

    messages = [
        Message(Role.USER, "time and weather?"),
        tool_call_reply(("c1", "clock", "{}"), ("c2", "weather", "{}")),
    ]

    first = completion(ctx, messages, [])
    assert first.tool_call_id == "c1"
    assert first.content() == "12:00"
    messages.append(first)

    second = completion(ctx, messages, [])
    assert second.tool_call_id == "c2"
    assert second.content() == "sunny"
    messages.append(second)

    assert backend.call_count == 0

    third = completion(ctx, messages, [])
    assert third.content() == "It is noon and sunny."
    assert backend.call_count == 1


def test_dispatcher_appends_declarations(registry, ctx):
    backend = MockedCompletion()
    upstream = {"name": "upstream", "description": "Declared upstream", "parameters": EMPTY_SCHEMA}

    registry.wrap(backend)(ctx, [Message(Role.USER, "hi")], [upstream])

    assert [tool_def["name"] for tool_def in backend.last_tool_defs] == ["upstream", "hello"]


def test_dispatcher_does_not_forward_unknown_tool(registry, ctx):
    backend = MockedCompletion()
    messages = [tool_call_reply(("c1", "missing", "{}"))]

    message = registry.wrap(backend)(ctx, messages, [])

    assert message.content() == "tool not found: missing"
    assert backend.call_count == 0

"""Tests for the message model."""

import pytest

from agentpipe.types.cancellation import Context
from agentpipe.types.content import Image, Message, Role, ToolCall


def test_literal_content(ctx):
    message = Message(Role.USER, "Hello")

    assert message.role is Role.USER
    assert message.content(ctx) == "Hello"
    assert not message.is_dynamic


def test_content_defaults_to_background_context():
    assert Message(Role.USER, "Hello").content() == "Hello"


def test_dynamic_content_is_evaluated_on_every_read():
    calls = []

    def produce(ctx):
        calls.append(ctx)
        return f"call {len(calls)}"

    ctx = Context.background()
    message = Message.dynamic(Role.SYSTEM, produce)

    assert message.is_dynamic
    assert message.content(ctx) == "call 1"
    assert message.content(ctx) == "call 2"
    assert calls == [ctx, ctx]


def test_dynamic_content_error_propagates(ctx):
    def produce(ctx):
        raise RuntimeError("no clock")

    message = Message.dynamic(Role.SYSTEM, produce)

    with pytest.raises(RuntimeError, match="no clock"):
        message.content(ctx)


def test_images_are_returned_as_copy():
    message = Message.with_image(Role.USER, "look", "cat.png", b"\x89PNG")
    message.add_image("dog.png", b"woof")

    images = message.images
    images.clear()

    assert message.images == [Image(name="cat.png", data=b"\x89PNG"), Image(name="dog.png", data=b"woof")]


def test_tool_calls():
    first = ToolCall(id="1", name="clock", arguments="{}")
    second = ToolCall(id="2", name="weather", arguments='{"city": "Paris"}')
    message = Message(Role.ASSISTANT, tool_calls=[first, second])

    assert message.has_tool_calls()
    assert message.first_tool_call() == first


def test_message_without_tool_calls():
    message = Message(Role.ASSISTANT, "plain")

    assert not message.has_tool_calls()
    assert message.first_tool_call() is None


@pytest.mark.parametrize("role", [Role.USER, Role.SYSTEM, Role.TOOL])
def test_tool_calls_only_allowed_on_assistant_messages(role):
    with pytest.raises(ValueError, match="only assistant messages may carry tool calls"):
        Message(role, tool_calls=[ToolCall(id="1", name="clock")])


def test_tool_result_answers_call():
    call = ToolCall(id="call-7", name="clock", arguments="{}")

    result = Message.tool_result(call, "12:00")

    assert result.role is Role.TOOL
    assert result.tool_call_id == "call-7"
    assert result.name == "clock"
    assert result.content() == "12:00"


def test_tags_and_attributes():
    message = Message(Role.ASSISTANT, "done")

    message.tag("stop")
    message.set_attr("model", "small")

    assert message.has_tag("stop")
    assert message.get_attr("stop") is None
    assert message.has_tag("model")
    assert message.get_attr("model") == "small"
    assert message.get_attr("missing") is None

    message.clear_tag("stop")
    message.clear_tag("missing")

    assert not message.has_tag("stop")
    assert message.attributes == {"model": "small"}


def test_function_role_is_deprecated_alias_of_tool():
    assert Role.FUNCTION is Role.TOOL
    assert Role("function") is Role.TOOL
    assert Role("tool") is Role.TOOL


def test_unknown_role_is_rejected():
    with pytest.raises(ValueError):
        Role("narrator")


def test_role_accepts_plain_strings():
    assert Message("assistant", "hi").role is Role.ASSISTANT


def test_copy_is_independent():
    producer_calls = []

    def produce(ctx):
        producer_calls.append(ctx)
        return "dynamic"

    original = Message(
        Role.ASSISTANT,
        content_fn=produce,
        images=[Image(name="a.png", data=b"a")],
        tool_calls=[ToolCall(id="1", name="clock")],
        attributes={"source": "test"},
    )

    copied = original.copy()
    copied.add_image("b.png", b"b")
    copied.tool_calls.append(ToolCall(id="2", name="weather"))
    copied.tag("stop")

    assert len(original.images) == 1
    assert len(original.tool_calls) == 1
    assert not original.has_tag("stop")
    assert copied.content() == "dynamic"
    assert original.content() == "dynamic"
    assert len(producer_calls) == 2


def test_repr_does_not_evaluate_dynamic_content():
    def produce(ctx):
        raise AssertionError("evaluated")

    assert "<dynamic>" in repr(Message.dynamic(Role.USER, produce))

from unittest import mock

import pytest

from agentpipe.agent.agent import Agent
from agentpipe.telemetry.tracer import STEP_SPAN_NAME, TRACER_NAME, get_tracer, step_attributes
from agentpipe.types.content import Role
from fixtures.mocked_completion import MockedCompletion


@pytest.fixture
def mock_tracer():
    with mock.patch("agentpipe.agent.agent.get_tracer") as mock_get_tracer:
        mock_tracer = mock.MagicMock()
        mock_tracer.start_as_current_span.return_value.__exit__.return_value = False
        mock_get_tracer.return_value = mock_tracer
        yield mock_tracer


@pytest.fixture
def mock_span(mock_tracer):
    return mock_tracer.start_as_current_span.return_value.__enter__.return_value


def test_step_attributes():
    assert step_attributes("helper", 3) == {"agentpipe.message_count": 3, "agentpipe.agent.name": "helper"}
    assert step_attributes(None, 0) == {"agentpipe.message_count": 0}


def test_get_tracer():
    with mock.patch("agentpipe.telemetry.tracer.trace_api.get_tracer") as mock_get_tracer:
        tracer = get_tracer()

    mock_get_tracer.assert_called_once_with(TRACER_NAME)
    assert tracer is mock_get_tracer.return_value


def test_get_tracer_without_sdk_is_usable():
    with get_tracer().start_as_current_span(STEP_SPAN_NAME) as span:
        span.set_attribute("agentpipe.message_count", 1)


def test_step_records_span(ctx, mock_tracer, mock_span):
    agent = Agent(MockedCompletion(), name="helper").add(Role.USER, "hi")

    agent.step(ctx)

    mock_tracer.start_as_current_span.assert_called_once_with(
        STEP_SPAN_NAME, attributes={"agentpipe.message_count": 1, "agentpipe.agent.name": "helper"}
    )
    mock_span.set_attribute.assert_called_once_with("agentpipe.message.role", "assistant")


def test_step_without_message_sets_no_role(ctx, mock_tracer, mock_span):
    agent = Agent(MockedCompletion([None])).add(Role.USER, "hi")

    agent.step(ctx)

    mock_tracer.start_as_current_span.assert_called_once()
    mock_span.set_attribute.assert_not_called()


def test_failed_step_exits_span_with_error(ctx, mock_tracer):
    agent = Agent(MockedCompletion([RuntimeError("backend down")])).add(Role.USER, "hi")

    with pytest.raises(RuntimeError):
        agent.step(ctx)

    exit_args = mock_tracer.start_as_current_span.return_value.__exit__.call_args.args
    assert exit_args[0] is RuntimeError

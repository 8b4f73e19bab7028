"""OpenTelemetry tracing for agent steps.

Spans are recorded through the global tracer provider. Without an OpenTelemetry SDK configured by the application
every span is a no-op.
"""

from typing import Optional

from opentelemetry import trace as trace_api
from opentelemetry.util.types import AttributeValue

TRACER_NAME = "agentpipe"
STEP_SPAN_NAME = "agentpipe.agent.step"


def get_tracer() -> trace_api.Tracer:
    """Return the tracer used for agent spans."""
    return trace_api.get_tracer(TRACER_NAME)


def step_attributes(agent_name: Optional[str], message_count: int) -> dict[str, AttributeValue]:
    """Build the attributes recorded on a step span.

    Args:
        agent_name: Name of the stepping agent, if it has one.
        message_count: Size of the history before the step.

    Returns:
        Span attributes.
    """
    attributes: dict[str, AttributeValue] = {"agentpipe.message_count": message_count}
    if agent_name:
        attributes["agentpipe.agent.name"] = agent_name
    return attributes

"""Sub-agent delegation."""

from .agent_set import (
    START_TOOL_NAME,
    STOP_TOOL_NAME,
    AgentFactory,
    AgentSet,
    DelegationState,
    StartArguments,
)

__all__ = [
    "START_TOOL_NAME",
    "STOP_TOOL_NAME",
    "AgentFactory",
    "AgentSet",
    "DelegationState",
    "StartArguments",
]

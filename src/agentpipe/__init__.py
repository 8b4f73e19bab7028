"""A composable pipeline for driving conversational agents against pluggable completion backends."""

from . import agent, delegation, pipeline, session, telemetry, tools, types
from .agent.agent import Agent
from .agent.config import AgentConfig
from .agent.run import StepFunc, Stepper, run, run_until
from .delegation.agent_set import AgentSet, DelegationState
from .pipeline.checks import STOP_TAG, stop_on_reply
from .pipeline.filters import last_messages, redact
from .tools.registry import ToolRegistry
from .types.cancellation import CancellationToken, Context
from .types.content import Image, Message, Role, ToolCall
from .types.tools import ToolDef

__all__ = [
    "Agent",
    "AgentConfig",
    "AgentSet",
    "CancellationToken",
    "Context",
    "DelegationState",
    "Image",
    "Message",
    "Role",
    "STOP_TAG",
    "StepFunc",
    "Stepper",
    "ToolCall",
    "ToolDef",
    "ToolRegistry",
    "agent",
    "delegation",
    "last_messages",
    "pipeline",
    "redact",
    "run",
    "run_until",
    "session",
    "stop_on_reply",
    "telemetry",
    "tools",
    "types",
]

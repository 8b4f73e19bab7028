"""This package provides the Agent interface together with its configuration and driver loop."""

from .agent import Agent
from .config import AgentConfig
from .run import Stepper, StepFunc, UntilFunc, run, run_until, stopped

__all__ = [
    "Agent",
    "AgentConfig",
    "StepFunc",
    "Stepper",
    "UntilFunc",
    "run",
    "run_until",
    "stopped",
]

"""Telemetry module.

This module provides tracing of agent steps through OpenTelemetry.
"""

from .tracer import STEP_SPAN_NAME, TRACER_NAME, get_tracer, step_attributes

__all__ = ["STEP_SPAN_NAME", "TRACER_NAME", "get_tracer", "step_attributes"]

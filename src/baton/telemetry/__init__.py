"""Telemetry module.

This module provides OpenTelemetry tracing for runs.
"""

from .tracer import Tracer, get_tracer

__all__ = [
    "Tracer",
    "get_tracer",
]

"""This package provides the run loop driving agents turn by turn."""

from .event_loop import RunScope, run_loop

__all__ = ["RunScope", "run_loop"]

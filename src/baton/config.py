"""Process-wide defaults.

Defaults are read once when a run starts and are never mutated by a run. Initial values come from the environment:

- `BATON_DEFAULT_MODEL`: name of the model used by agents that do not set one.
- `BATON_TRACING_DISABLED`: set to `1` or `true` to disable tracing.
"""

import logging
import os
import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models.provider import ModelProvider

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Defaults:
    """Snapshot of the process-wide defaults.

    Attributes:
        model_provider: Provider resolving model names when the run configuration has none.
        model: Model name used when neither the run configuration nor the agent sets a model.
        tracing_disabled: Disable tracing for runs that do not decide themselves.
    """

    model_provider: Optional["ModelProvider"] = None
    model: Optional[str] = None
    tracing_disabled: bool = False


def _from_environment() -> Defaults:
    return Defaults(
        model=os.environ.get("BATON_DEFAULT_MODEL") or None,
        tracing_disabled=os.environ.get("BATON_TRACING_DISABLED", "").strip().lower() in _TRUTHY,
    )


_lock = threading.Lock()
_defaults = _from_environment()


def get_defaults() -> Defaults:
    """Current defaults."""
    return _defaults


def _update(**changes: object) -> None:
    global _defaults
    with _lock:
        _defaults = replace(_defaults, **changes)


def set_default_model_provider(provider: Optional["ModelProvider"]) -> None:
    """Set the provider used to resolve model names."""
    logger.debug("provider=<%s> | setting default model provider", type(provider).__name__)
    _update(model_provider=provider)


def set_default_model(model: Optional[str]) -> None:
    """Set the model name used by agents that do not set one."""
    _update(model=model)


def set_tracing_disabled(disabled: bool) -> None:
    """Enable or disable tracing by default."""
    _update(tracing_disabled=disabled)


def reset_defaults() -> None:
    """Restore the defaults read from the environment."""
    global _defaults
    with _lock:
        _defaults = _from_environment()

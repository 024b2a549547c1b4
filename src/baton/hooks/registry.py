"""Hook registry for run lifecycle observers.

A run has two explicit observer lists: the providers passed to the run (or set on its `RunConfig`) and the providers
set on the active agent. The run loop builds one `HookRegistry` from both lists whenever the active agent changes.
Dispatch walks the run-level callbacks first, then the agent-level ones, each in registration order.
"""

import inspect
import logging
from collections.abc import Awaitable, Sequence
from typing import Any, Callable, Optional, Protocol, Union, get_type_hints, runtime_checkable

from .events import HookEvent

logger = logging.getLogger(__name__)

HookCallback = Callable[[Any], Union[None, Awaitable[None]]]
"""A callback receiving one event. Sync and async callables are both accepted."""


@runtime_checkable
class HookProvider(Protocol):
    """An observer that registers its callbacks with a registry.

    Example:
        ```python
        class Audit(HookProvider):
            def register_hooks(self, registry: HookRegistry, **kwargs: Any) -> None:
                registry.add_callback(BeforeToolCallEvent, self.on_tool)

            def on_tool(self, event: BeforeToolCallEvent) -> None:
                print(f"{event.agent.name} calls {event.call['name']}")

        agent = Agent(name="assistant", hooks=[Audit()])
        ```
    """

    def register_hooks(self, registry: "HookRegistry", **kwargs: Any) -> None:
        """Register callbacks with the registry."""
        ...


def _event_type_of(callback: HookCallback) -> type[HookEvent]:
    """Read the event type from the annotation of the callback's first parameter."""
    params = list(inspect.signature(callback).parameters.values())
    if not params:
        raise ValueError("callback has no parameters | pass the event type explicitly")

    try:
        hint = get_type_hints(callback).get(params[0].name)
    except Exception as e:
        raise ValueError("failed to resolve callback type hints | pass the event type explicitly") from e

    if hint is None:
        raise ValueError(f"parameter=<{params[0].name}> has no type hint | pass the event type explicitly")
    if not (isinstance(hint, type) and issubclass(hint, HookEvent)):
        raise ValueError(f"parameter=<{params[0].name}>, type=<{hint}> | type hint must be a HookEvent subclass")
    return hint


class HookRegistry:
    """Callbacks of the run-level and agent-level observers, keyed by event type."""

    def __init__(
        self,
        run_hooks: Sequence[HookProvider] = (),
        agent_hooks: Sequence[HookProvider] = (),
    ) -> None:
        """Register the run-level providers, then the agent-level providers.

        Args:
            run_hooks: Observers of the whole run.
            agent_hooks: Observers of the active agent.
        """
        self._callbacks: dict[type[HookEvent], list[HookCallback]] = {}
        for provider in (*run_hooks, *agent_hooks):
            provider.register_hooks(self)

    def add_callback(
        self,
        event_type: Union[type[HookEvent], HookCallback],
        callback: Optional[HookCallback] = None,
    ) -> None:
        """Register a callback for an event type.

        Called as `add_callback(EventType, callback)`, or as `add_callback(callback)` when the callback's first
        parameter is annotated with the event type.

        Raises:
            ValueError: If no callback is given or the event type cannot be read from the annotation.
        """
        if callback is None:
            if isinstance(event_type, type):
                raise ValueError("callback is required when the event type is given")
            callback = event_type
            event_type = _event_type_of(callback)

        self._callbacks.setdefault(event_type, []).append(callback)  # type: ignore[arg-type]

    async def dispatch(self, event: HookEvent) -> None:
        """Invoke the callbacks registered for the exact type of the event, awaiting async ones.

        Exceptions raised by a callback propagate to the run.
        """
        for callback in self._callbacks.get(type(event), []):
            result = callback(event)
            if inspect.isawaitable(result):
                await result

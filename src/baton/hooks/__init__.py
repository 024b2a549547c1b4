"""Typed hook system for observing runs.

Observers are explicit: a run and each agent carry their own list of hook providers. When an event fires, run-level
callbacks are invoked first, then the active agent's callbacks.

Example Usage:
    ```python
    from baton.hooks import AgentStartEvent, BeforeToolCallEvent, HookProvider, HookRegistry

    class LoggingHooks(HookProvider):
        def register_hooks(self, registry: HookRegistry, **kwargs) -> None:
            registry.add_callback(AgentStartEvent, self.log_start)
            registry.add_callback(BeforeToolCallEvent, self.log_tool)

        def log_start(self, event: AgentStartEvent) -> None:
            print(f"Agent started: {event.agent.name}")

        def log_tool(self, event: BeforeToolCallEvent) -> None:
            print(f"Tool: {event.call['name']}")

    result = await Runner.run(agent, "hello", hooks=[LoggingHooks()])
    ```
"""

from .events import (
    AfterModelCallEvent,
    AfterToolCallEvent,
    AgentEndEvent,
    AgentStartEvent,
    BeforeModelCallEvent,
    BeforeToolCallEvent,
    HandoffEvent,
    HookEvent,
)
from .registry import HookCallback, HookProvider, HookRegistry

__all__ = [
    # Events
    "AgentStartEvent",
    "AgentEndEvent",
    "HandoffEvent",
    "BeforeModelCallEvent",
    "AfterModelCallEvent",
    "BeforeToolCallEvent",
    "AfterToolCallEvent",
    "HookEvent",
    # Registry
    "HookCallback",
    "HookProvider",
    "HookRegistry",
]

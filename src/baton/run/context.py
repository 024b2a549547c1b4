"""Run context carrier threaded through every step of a run."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Optional

from typing_extensions import TypeVar

from ..types.usage import Usage

if TYPE_CHECKING:
    from ..types.cancellation import CancellationToken
    from .config import RunConfig
    from .items import ToolApprovalItem

TContext = TypeVar("TContext", default=Any)
"""Type of the caller supplied context value."""


@dataclass
class RunContext(Generic[TContext]):
    """Wraps the caller supplied context value.

    The same instance is passed by reference to every tool, guardrail, hook and dynamic instructions function of a
    run. Neither the wrapper nor the value is ever sent to the model.

    Attributes:
        context: The caller supplied value.
        usage: Token usage aggregated over every model call of the run.
        run_config: Configuration of the run, bound by the runner and inherited by nested agent tool runs.
        cancellation_token: Token of the run, bound by the runner and shared with nested agent tool runs.
    """

    context: TContext
    usage: Usage = field(default_factory=Usage)
    run_config: Optional["RunConfig"] = field(default=None, repr=False, compare=False)
    cancellation_token: Optional["CancellationToken"] = field(default=None, repr=False, compare=False)
    _call_decisions: dict[str, bool] = field(default_factory=dict, repr=False)
    _tool_decisions: dict[str, bool] = field(default_factory=dict, repr=False)

    def is_tool_approved(self, tool_name: str, call_id: str) -> Optional[bool]:
        """Look up the approval decision for a tool call.

        A decision recorded for the specific call wins over a decision recorded for every call of the tool.

        Args:
            tool_name: Name of the tool.
            call_id: Identifier of the call.

        Returns:
            True if approved, False if rejected, None if no decision was made yet.
        """
        if call_id in self._call_decisions:
            return self._call_decisions[call_id]

        return self._tool_decisions.get(tool_name)

    def approve_tool(self, approval_item: "ToolApprovalItem", always_approve: bool = False) -> None:
        """Approve a pending tool call.

        Args:
            approval_item: The pending call.
            always_approve: Also approve every future call of the same tool in this run.
        """
        self._decide(approval_item, True, always_approve)

    def reject_tool(self, approval_item: "ToolApprovalItem", always_reject: bool = False) -> None:
        """Reject a pending tool call.

        Args:
            approval_item: The pending call.
            always_reject: Also reject every future call of the same tool in this run.
        """
        self._decide(approval_item, False, always_reject)

    def _decide(self, approval_item: "ToolApprovalItem", approved: bool, always: bool) -> None:
        self._call_decisions[approval_item.call_id] = approved
        if always:
            self._tool_decisions[approval_item.tool_name] = approved

    def to_dict(self) -> dict[str, Any]:
        """Serialize usage and approval decisions. The context value is serialized by the run state."""
        return {
            "usage": self.usage.to_dict(),
            "callDecisions": dict(self._call_decisions),
            "toolDecisions": dict(self._tool_decisions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], context: Any) -> "RunContext[Any]":
        """Restore a run context around the given context value."""
        return cls(
            context=context,
            usage=Usage.from_dict(data["usage"]),
            _call_decisions=dict(data["callDecisions"]),
            _tool_decisions=dict(data["toolDecisions"]),
        )

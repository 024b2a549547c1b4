"""Cancellation token types for cooperative run termination."""

import threading


class CancellationToken:
    """Thread-safe cancellation token for cooperative run termination.

    A single token is handed to a run. The run loop checks it at the start of every turn and around each model and
    tool call; once cancelled, the loop unwinds with a `RunCancelledError`. Tool calls that were already dispatched
    are not rolled back.

    Example:
        ```python
        token = CancellationToken()

        # In another thread or task
        token.cancel()

        # In the run loop
        if token.is_cancelled():
            ...
        ```
    """

    def __init__(self) -> None:
        """Initialize a new cancellation token."""
        self._cancelled = False
        self._reason: str | None = None
        self._lock = threading.Lock()

    def cancel(self, reason: str | None = None) -> None:
        """Signal cancellation request.

        Safe to call from any thread and idempotent; the first reason given is kept.

        Args:
            reason: Optional human readable reason for the cancellation.
        """
        with self._lock:
            if not self._cancelled:
                self._reason = reason
            self._cancelled = True

    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested.

        Returns:
            True if cancellation has been requested, False otherwise.
        """
        with self._lock:
            return self._cancelled

    @property
    def reason(self) -> str | None:
        """Reason passed to the first `cancel` call, if any."""
        with self._lock:
            return self._reason

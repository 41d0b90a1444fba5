"""Explicit time budget for multi-step workflow operations."""
import os
import time

from exceptions import OperationTimedOut

WORKFLOW_TIMEOUT_SECONDS = float(os.getenv("INTERCOMPANY_WORKFLOW_TIMEOUT_SECONDS", "60"))


class Deadline:
    """
    Tracks the time budget of one workflow call.

    The workflow calls `check(step)` between steps. Once the budget is spent,
    `check` raises OperationTimedOut, which aborts the enclosing transaction
    before anything is committed. Each call gets its own Deadline, so no
    processing state is shared between requests.
    """

    def __init__(self, operation: str, seconds: float = None, clock=time.monotonic):
        self.operation = operation
        self.seconds = WORKFLOW_TIMEOUT_SECONDS if seconds is None else seconds
        self._clock = clock
        self.started_at = clock()
        self.last_step = None

    @property
    def remaining(self) -> float:
        return max(0.0, self.started_at + self.seconds - self._clock())

    @property
    def expired(self) -> bool:
        return self._clock() - self.started_at >= self.seconds

    def check(self, step: str):
        self.last_step = step
        if self.expired:
            raise OperationTimedOut(
                f"{self.operation} did not finish within {self.seconds:g}s (stopped before '{step}'). "
                "No changes were saved; query the transaction group by reference to confirm.",
                operation=self.operation,
                step=step,
            )

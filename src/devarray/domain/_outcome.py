"""
Results of array operations.

Array operations do not raise on runtime failures and silently skip when a
precondition is unmet (e.g. copying before `allocate()`). `OpResult` makes the
skip observable: callers (and tests) can tell a completed call from a skipped
one without the array changing its permissive behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ._status import CudaStatus


class Outcome(Enum):
    """
    What an array operation did.

    Attributes
    ----------
    COMPLETED : Outcome
        The runtime was called; its status is in `OpResult.status`.
    SKIPPED : Outcome
        The operation had nothing to do, or its precondition was unmet, and the
        runtime was not called.
    """

    COMPLETED = "completed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class OpResult:
    """
    Outcome of a single array operation.

    Attributes
    ----------
    outcome : Outcome
        Whether the runtime was called.
    status : CudaStatus
        Status of the runtime call when completed, otherwise the array's
        unchanged last status.
    """

    outcome: Outcome
    status: CudaStatus

    @property
    def completed(self) -> bool:
        return self.outcome is Outcome.COMPLETED

    @property
    def skipped(self) -> bool:
        return self.outcome is Outcome.SKIPPED

    @property
    def ok(self) -> bool:
        """True if the operation completed and the runtime reported success."""
        return self.completed and self.status.ok

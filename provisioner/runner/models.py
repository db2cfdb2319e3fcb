"""Data models for provisioning run results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .exceptions import PrivilegeError

# sysexits.h EX_NOPERM
EXIT_PRIVILEGE = 77


class Outcome(Enum):
    """Result of a single step."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class StepResult:
    """Result of a single provisioning step."""

    name: str
    outcome: Outcome
    duration_seconds: float
    details: dict[str, Any]
    error: str | None = None
    critical: bool = False

    @property
    def success(self) -> bool:
        return self.outcome != Outcome.FAILED

    @property
    def skipped(self) -> bool:
        return self.outcome == Outcome.SKIPPED


@dataclass
class RunReport:
    """Ordered outcome record of one provisioning run.

    Attributes:
        started_at: When the run started.
        finished_at: When the run ended (aborted or not).
        results: One entry per executed step, in declared order.
        aborted: True if the privilege check or a critical step failed.
        error: The exception that aborted the run, if any.
        failed_position: 1-based position of the aborting step in the
            declared sequence.
    """

    started_at: datetime
    finished_at: datetime | None = None
    results: list[StepResult] = field(default_factory=list)
    aborted: bool = False
    error: Optional[Exception] = None
    failed_position: int | None = None

    @property
    def success(self) -> bool:
        return not self.aborted

    @property
    def has_failures(self) -> bool:
        return any(result.outcome == Outcome.FAILED for result in self.results)

    @property
    def failed_step(self) -> str | None:
        """Name of the critical step that aborted the run."""
        if self.failed_position is None or not self.results:
            return None
        return self.results[-1].name

    @property
    def exit_code(self) -> int:
        if isinstance(self.error, PrivilegeError):
            return EXIT_PRIVILEGE
        if self.aborted:
            return self.failed_position or 1
        return 0

    def count(self, outcome: Outcome) -> int:
        return sum(1 for result in self.results if result.outcome == outcome)

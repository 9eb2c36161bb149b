"""
Outcome schemas - what a run of steps produced.

ExecutionOutcome is the run's mutable failure state. StepOutcome records what
happened to each step, including skipped ones.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class StepStatus(str, Enum):
    """Status of a step within a run."""
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ExecutionOutcome:
    """
    Failure state of one run.

    Updated monotonically: once failed, always failed. last_error holds the
    most recent failure only; later successes never clear it.
    """
    failed: bool = False
    last_error: Optional[Exception] = None

    def record_failure(self, error: Exception) -> None:
        self.failed = True
        self.last_error = error


@dataclass(frozen=True)
class StepOutcome:
    """
    The outcome of a single step.

    Attributes:
        index: Position of the step in the run
        step_type: String value of the step type
        name: Step display label
        status: completed, failed or skipped
        started_at: When execution started (None if skipped)
        completed_at: When execution ended (None if skipped)
        error: Error details if status is failed
    """
    index: int
    step_type: str
    name: str
    status: StepStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[dict[str, Any]] = None

    @property
    def duration_ms(self) -> Optional[int]:
        """Execution duration in milliseconds if both timestamps present."""
        if self.started_at and self.completed_at:
            delta = self.completed_at - self.started_at
            return int(delta.total_seconds() * 1000)
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        result: dict[str, Any] = {
            "index": self.index,
            "step_type": self.step_type,
            "name": self.name,
            "status": self.status.value,
        }
        if self.started_at is not None:
            result["started_at"] = self.started_at.isoformat()
        if self.completed_at is not None:
            result["completed_at"] = self.completed_at.isoformat()
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class RunResult:
    """Result of running a step list."""
    outcome: ExecutionOutcome
    step_outcomes: tuple[StepOutcome, ...] = field(default_factory=tuple)

    @property
    def success(self) -> bool:
        return self.outcome.last_error is None

    @property
    def error(self) -> Optional[Exception]:
        return self.outcome.last_error

    @property
    def failed_steps(self) -> list[StepOutcome]:
        return [s for s in self.step_outcomes if s.status == StepStatus.FAILED]

    @property
    def skipped_steps(self) -> list[StepOutcome]:
        return [s for s in self.step_outcomes if s.status == StepStatus.SKIPPED]

"""
StepRunner - sequential step dispatch with on-failure semantics.

Execution flow, strictly in list order:
1. If an earlier step failed and this step is not marked on_failure, skip it
   (no executor built, nothing logged for it)
2. Otherwise build the executor for the step's type from the registry and run it
   - An unknown/unregistered type fails the step (StepTypeUnknownError)
   - Executor construction errors fail the step too
3. On failure: mark the run failed and remember the error, overwriting any
   earlier one (the most recent failure wins)
4. On success: leave the remembered error as it is

run_steps() returns the remembered error, or None if no executed step failed.
There is no per-step timeout or cancellation: a step runs until its executor
returns or raises.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from jobagent.schemas import (
    ExecutionOutcome,
    RunResult,
    Step,
    StepContext,
    StepOutcome,
    StepStatus,
)
from jobagent.steps import StepExecutorRegistry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _type_value(step: Step) -> str:
    return getattr(step.step_type, "value", str(step.step_type))


class StepRunner:
    """
    Runs the steps of one job against a shared StepContext.

    Usage:
        runner = StepRunner(StepExecutorRegistry.create_default())
        result = runner.run(job.steps, job.to_context())
        if not result.success:
            raise result.error

    The runner holds no per-run state; concurrent runs of different jobs may
    share one instance.
    """

    def __init__(self, registry: Optional[StepExecutorRegistry] = None):
        self._registry = registry or StepExecutorRegistry.create_default()

    @property
    def registry(self) -> StepExecutorRegistry:
        return self._registry

    def run(self, steps: Sequence[Step], context: StepContext) -> RunResult:
        """
        Run steps in order, honouring on_failure flags.

        Args:
            steps: Ordered steps, not modified during the run
            context: Workspace and environment shared by every step

        Returns:
            RunResult with the run's outcome and one StepOutcome per step
        """
        steps = tuple(steps)
        outcome = ExecutionOutcome()
        step_outcomes: list[StepOutcome] = []

        for index, step in enumerate(steps):
            if outcome.failed and not step.on_failure:
                step_outcomes.append(StepOutcome(
                    index=index,
                    step_type=_type_value(step),
                    name=step.label,
                    status=StepStatus.SKIPPED,
                ))
                continue

            started_at = _utcnow()
            try:
                self._run_step(step, context)
            except Exception as e:
                logger.error(f"Step {index} ({step.label}) failed: {e}")
                outcome.record_failure(e)
                step_outcomes.append(StepOutcome(
                    index=index,
                    step_type=_type_value(step),
                    name=step.label,
                    status=StepStatus.FAILED,
                    started_at=started_at,
                    completed_at=_utcnow(),
                    error={"type": type(e).__name__, "message": str(e)},
                ))
                continue

            step_outcomes.append(StepOutcome(
                index=index,
                step_type=_type_value(step),
                name=step.label,
                status=StepStatus.COMPLETED,
                started_at=started_at,
                completed_at=_utcnow(),
            ))

        return RunResult(outcome=outcome, step_outcomes=tuple(step_outcomes))

    def _run_step(self, step: Step, context: StepContext) -> None:
        executor = self._registry.create(step, context)
        logger.info(f"Running step: {step.label} (type={_type_value(step)})")
        executor.run()


def run_steps(
    steps: Sequence[Step],
    context: StepContext,
    registry: Optional[StepExecutorRegistry] = None,
) -> Optional[Exception]:
    """
    Run steps and return the most recent failure, or None if none failed.

    The returned error is the exact exception raised for the last failing
    step, while the failed flag still halts later steps not marked on_failure.
    """
    return StepRunner(registry).run(steps, context).error

"""ProvisioningRunner - applies an ordered list of steps to a host."""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from provisioner.host import HostCapability, ServiceNotFoundError
from provisioner.steps.base import Step

from .exceptions import PrivilegeError, StepOrderError
from .models import Outcome, RunReport, StepResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[StepResult], None]


class ProvisioningRunner:
    """Runs provisioning steps strictly in declared order.

    Verifies privilege once, then for each step either skips it (its
    effect is already present) or applies it. A failing critical step
    aborts the run; other failures are logged and the run continues.
    Not safe to run concurrently with another instance against the
    same host.

    Example:
        report = ProvisioningRunner(steps, create_local_host()).run()
        print(f"Exit code: {report.exit_code}")
    """

    def __init__(
        self,
        steps: Sequence[Step],
        host: HostCapability,
        progress: Optional[ProgressCallback] = None,
    ):
        self._steps = list(steps)
        self._host = host
        self._progress = progress
        self._validate_order(self._steps)

    @property
    def steps(self) -> list[Step]:
        return list(self._steps)

    @staticmethod
    def _validate_order(steps: list[Step]) -> None:
        seen: set[str] = set()
        for position, step in enumerate(steps, start=1):
            if step.name in seen:
                raise StepOrderError(f"Duplicate step name '{step.name}'")
            seen.add(step.name)
            if step.runs_last and position != len(steps):
                raise StepOrderError(
                    f"Step '{step.name}' must be the last step "
                    f"(declared at position {position} of {len(steps)})"
                )

    def _run_step(self, step: Step) -> tuple[StepResult, Optional[Exception]]:
        """Run one step with timing and error isolation.

        Returns:
            The step result, and the exception for a failed step.
        """
        start = time.monotonic()

        def finish(outcome: Outcome, details: dict, error: str | None = None) -> StepResult:
            return StepResult(
                name=step.name,
                outcome=outcome,
                duration_seconds=round(time.monotonic() - start, 2),
                details=details,
                error=error,
                critical=step.critical,
            )

        try:
            if step.check(self._host):
                logger.debug("Step '%s' already satisfied", step.name, extra={"step": step.name})
                return finish(Outcome.SKIPPED, {}), None
            details = step.apply(self._host)
            return finish(Outcome.SUCCESS, details or {}), None
        except ServiceNotFoundError as e:
            logger.info("Step '%s' skipped: %s", step.name, e, extra={"step": step.name})
            return finish(Outcome.SKIPPED, {"service": e.service, "reason": "not installed"}), None
        except Exception as e:
            if step.critical:
                logger.exception("Critical step '%s' failed", step.name, extra={"step": step.name})
            else:
                logger.exception(
                    "Step '%s' failed, continuing", step.name, extra={"step": step.name}
                )
            return finish(Outcome.FAILED, {}, error=str(e)), e

    def _report(self, result: StepResult) -> None:
        if self._progress is not None:
            self._progress(result)

    def run(self) -> RunReport:
        """Execute the full step sequence.

        Returns:
            RunReport with one entry per executed step. When the privilege
            check fails the report has no entries and is aborted.
        """
        report = RunReport(started_at=datetime.now(timezone.utc))

        if not self._host.is_privileged():
            error = PrivilegeError()
            logger.error("Privilege check failed: %s", error)
            report.aborted = True
            report.error = error
            report.finished_at = datetime.now(timezone.utc)
            return report

        for position, step in enumerate(self._steps, start=1):
            result, exception = self._run_step(step)
            report.results.append(result)
            logger.debug(
                "Step '%s' finished",
                step.name,
                extra={
                    "step": step.name,
                    "outcome": result.outcome.value,
                    "duration_seconds": result.duration_seconds,
                },
            )
            self._report(result)

            if result.outcome == Outcome.FAILED and step.critical:
                report.aborted = True
                report.error = exception
                report.failed_position = position
                logger.error(
                    "Aborting run after critical step '%s' failed (%d of %d)",
                    step.name,
                    position,
                    len(self._steps),
                    extra={"step": step.name},
                )
                break

        summary = {outcome.value: report.count(outcome) for outcome in Outcome}
        summary["aborted"] = report.aborted
        logger.info("Run finished", extra={"summary": summary})
        report.finished_at = datetime.now(timezone.utc)
        return report

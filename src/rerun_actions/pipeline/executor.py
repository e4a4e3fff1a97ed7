"""Cancel-and-rerun of selected workflow runs."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from rerun_actions.github.client import GitHubClientError
from rerun_actions.github.models import WorkflowRunData


logger = logging.getLogger(__name__)


class RunSink(Protocol):
    """Anything that can cancel and rerun workflow runs by ID."""

    def cancel_run(self, run_id: int) -> None: ...

    def rerun_run(self, run_id: int) -> None: ...


class OutcomeStatus(str, Enum):
    """What happened to a single run."""

    RERUN = "rerun"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RunOutcome:
    """Result of processing one run."""

    run_id: int
    status: OutcomeStatus
    cancelled: bool = False
    cancel_error: str | None = None
    error: str | None = None


@dataclass
class ExecutionResult:
    """Result of processing a batch of runs."""

    outcomes: list[RunOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return sum(1 for o in self.outcomes if o.status is not OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status is OutcomeStatus.FAILED)


class RerunExecutor:
    """Cancels unfinished runs and requests reruns, one run at a time."""

    def __init__(self, sink: RunSink, skip_successful: bool = True):
        """Initialize the executor.

        Args:
            sink: Cancel/rerun API
            skip_successful: Skip runs that completed successfully, which the
                rerun endpoint refuses
        """
        self.sink = sink
        self.skip_successful = skip_successful

    def execute(self, runs: list[WorkflowRunData]) -> ExecutionResult:
        result = ExecutionResult()
        for run in runs:
            result.outcomes.append(self._process(run))
        return result

    def _process(self, run: WorkflowRunData) -> RunOutcome:
        if self.skip_successful and run.succeeded:
            logger.debug(f"Workflow run {run.id} succeeded, will not rerun")
            return RunOutcome(run_id=run.id, status=OutcomeStatus.SKIPPED)

        outcome = RunOutcome(run_id=run.id, status=OutcomeStatus.RERUN)

        if not run.is_completed:
            logger.debug(f"Run {run.id} status: {run.status}")
            try:
                self.sink.cancel_run(run.id)
                outcome.cancelled = True
            except GitHubClientError as e:
                # The run may already be finishing; rerun anyway.
                logger.debug(f"Failed to cancel workflow run {run.id}: {e}")
                outcome.cancel_error = str(e)

        logger.debug(f"Rerunning {run.id}")
        try:
            self.sink.rerun_run(run.id)
        except GitHubClientError as e:
            logger.error(f"Failed to rerun workflow run {run.id}: {e}")
            outcome.status = OutcomeStatus.FAILED
            outcome.error = str(e)

        return outcome

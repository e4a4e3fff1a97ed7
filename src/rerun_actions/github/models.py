"""Data models for GitHub entities."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class WorkflowState(str, Enum):
    """Workflow state as reported by the Actions API."""

    ACTIVE = "active"
    DELETED = "deleted"
    DISABLED_FORK = "disabled_fork"
    DISABLED_INACTIVITY = "disabled_inactivity"
    DISABLED_MANUALLY = "disabled_manually"


class RunStatus(str, Enum):
    """Workflow run status."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    WAITING = "waiting"
    REQUESTED = "requested"
    PENDING = "pending"


class RunConclusion(str, Enum):
    """Workflow run conclusion (only set once a run is completed)."""

    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"
    ACTION_REQUIRED = "action_required"
    NEUTRAL = "neutral"
    STALE = "stale"
    STARTUP_FAILURE = "startup_failure"


@dataclass(frozen=True)
class IssueData:
    """Snapshot of the issue a comment was left on."""

    number: int
    is_pull_request: bool
    locked: bool = False
    labels: frozenset[str] = frozenset()
    author: str = ""


@dataclass(frozen=True)
class CommentData:
    """GitHub issue comment."""

    id: int
    body: str
    author: str
    author_association: str | None = None
    issue_url: str = ""


@dataclass(frozen=True)
class PRData:
    """Snapshot of a pull request, fetched once per invocation."""

    number: int
    head_sha: str
    created_at: datetime
    merged: bool = False


@dataclass(frozen=True)
class WorkflowData:
    """GitHub Actions workflow definition."""

    id: int
    name: str
    path: str
    state: str = WorkflowState.ACTIVE.value

    @property
    def is_active(self) -> bool:
        return self.state == WorkflowState.ACTIVE.value


@dataclass(frozen=True)
class WorkflowRunData:
    """One execution of a workflow."""

    id: int
    workflow_id: int
    head_sha: str
    created_at: datetime
    status: str
    conclusion: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == RunStatus.COMPLETED.value

    @property
    def succeeded(self) -> bool:
        return self.is_completed and self.conclusion == RunConclusion.SUCCESS.value


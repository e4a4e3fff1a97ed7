"""GitHub integration module for rerun_actions."""

from rerun_actions.github.client import GitHubClient, GitHubClientError
from rerun_actions.github.models import (
    CommentData,
    IssueData,
    PRData,
    RunConclusion,
    RunStatus,
    WorkflowData,
    WorkflowRunData,
    WorkflowState,
)

__all__ = [
    "GitHubClient",
    "GitHubClientError",
    "CommentData",
    "IssueData",
    "PRData",
    "RunConclusion",
    "RunStatus",
    "WorkflowData",
    "WorkflowRunData",
    "WorkflowState",
]

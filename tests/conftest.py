"""Pytest fixtures for rerun_actions tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from rerun_actions.github.models import (
    IssueData,
    PRData,
    WorkflowData,
    WorkflowRunData,
)
from rerun_actions.pipeline.context import CommentContext


PR_CREATED_AT = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
HEAD_SHA = "a1b2c3d4"


@pytest.fixture
def pr():
    """Open pull request snapshot."""
    return PRData(number=42, head_sha=HEAD_SHA, created_at=PR_CREATED_AT)


@pytest.fixture
def issue():
    """Open, unlocked pull request issue."""
    return IssueData(
        number=42,
        is_pull_request=True,
        locked=False,
        labels=frozenset({"ok-to-test"}),
        author="pr-author",
    )


@pytest.fixture
def make_context(issue):
    """Factory for comment contexts on the default issue."""

    def _make(body="/retest", author="maintainer", association="MEMBER", **kwargs):
        return CommentContext(
            repository="owner/repo",
            comment_id=1001,
            body=body,
            author=author,
            author_association=association,
            issue=kwargs.get("issue", issue),
            action=kwargs.get("action", "created"),
        )

    return _make


@pytest.fixture
def make_workflow():
    """Factory for workflows."""

    def _make(id, name, path=None, state="active"):
        return WorkflowData(
            id=id,
            name=name,
            path=path or f".github/workflows/{name}.yml",
            state=state,
        )

    return _make


@pytest.fixture
def make_run():
    """Factory for workflow runs created some minutes after the PR."""

    def _make(id, workflow_id, head_sha=HEAD_SHA, minutes=5, status="completed", conclusion="failure"):
        return WorkflowRunData(
            id=id,
            workflow_id=workflow_id,
            head_sha=head_sha,
            created_at=PR_CREATED_AT + timedelta(minutes=minutes),
            status=status,
            conclusion=conclusion,
        )

    return _make


@pytest.fixture
def mock_github_client(pr):
    """Mock GitHub client with no workflows."""
    client = MagicMock()
    client.repo_name = "owner/repo"
    client.get_pr.return_value = pr
    client.list_workflows.return_value = []
    client.list_workflow_runs.return_value = iter([])
    return client


@pytest.fixture
def sample_comment_event():
    """issue_comment event payload as delivered by GitHub."""
    return {
        "action": "created",
        "installation": {"id": 12345},
        "repository": {"full_name": "owner/repo"},
        "sender": {"login": "maintainer"},
        "issue": {
            "number": 42,
            "locked": False,
            "labels": [{"name": "ok-to-test"}],
            "user": {"login": "pr-author"},
            "pull_request": {"url": "https://api.github.com/repos/owner/repo/pulls/42"},
        },
        "comment": {
            "id": 1001,
            "body": "/rerun-all",
            "user": {"login": "maintainer"},
            "author_association": "MEMBER",
        },
    }

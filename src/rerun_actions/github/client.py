"""GitHub client wrapping PyGithub."""

import os
import re
from collections.abc import Iterator

from github import Auth, Github, GithubException
from github.Repository import Repository
from github.Workflow import Workflow
from github.WorkflowRun import WorkflowRun

from rerun_actions.github.models import (
    CommentData,
    IssueData,
    PRData,
    WorkflowData,
    WorkflowRunData,
)


class GitHubClientError(Exception):
    """Raised when GitHub operations fail."""


class GitHubClient:
    """GitHub client scoped to a single repository and a single invocation.

    Workflow and run objects listed through the client are kept so that
    cancel and rerun requests do not refetch them. A client is never shared
    between invocations.
    """

    def __init__(
        self,
        token: str | None = None,
        repo_name: str | None = None,
        base_url: str | None = None,
    ):
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise GitHubClientError(
                "GitHub token not found. Set GITHUB_TOKEN environment variable."
            )

        if base_url:
            self._github = Github(auth=Auth.Token(self.token), base_url=base_url)
        else:
            self._github = Github(auth=Auth.Token(self.token))
        self._repo_name = repo_name
        self._repo: Repository | None = None

        self._workflows: dict[int, Workflow] = {}
        self._runs: dict[int, WorkflowRun] = {}

    # ------------------------------------------------------------------
    # Repository helpers
    # ------------------------------------------------------------------

    @property
    def repo(self) -> Repository:
        if self._repo is None:
            if not self._repo_name:
                raise GitHubClientError("Repository name not set.")
            try:
                self._repo = self._github.get_repo(self._repo_name)
            except GithubException as e:
                raise GitHubClientError(f"Failed to get repository: {e}") from e
        return self._repo

    @property
    def repo_name(self) -> str | None:
        return self._repo_name

    # ------------------------------------------------------------------
    # Comments / Issues / PRs
    # ------------------------------------------------------------------

    def get_comment(self, comment_id: int) -> CommentData:
        try:
            comment = self.repo.get_issue_comment(comment_id)
            return CommentData(
                id=comment.id,
                body=comment.body or "",
                author=comment.user.login if comment.user else "",
                author_association=comment.raw_data.get("author_association"),
                issue_url=comment.issue_url,
            )
        except GithubException as e:
            raise GitHubClientError(f"Failed to get comment {comment_id}: {e}") from e

    def get_issue(self, issue_number: int) -> IssueData:
        try:
            issue = self.repo.get_issue(number=issue_number)
            return IssueData(
                number=issue.number,
                is_pull_request=issue.pull_request is not None,
                locked=bool(issue.locked),
                labels=frozenset(label.name for label in issue.labels),
                author=issue.user.login if issue.user else "",
            )
        except GithubException as e:
            raise GitHubClientError(f"Failed to get issue #{issue_number}: {e}") from e

    def get_issue_for_comment(self, comment: CommentData) -> IssueData:
        """Fetch the issue a comment belongs to, using the comment's issue URL."""
        repo_name, issue_number = self.parse_issue_api_url(comment.issue_url)
        if self._repo_name and repo_name.lower() != self._repo_name.lower():
            raise GitHubClientError(
                f"Comment {comment.id} belongs to {repo_name}, not {self._repo_name}"
            )
        return self.get_issue(issue_number)

    def get_pr(self, pr_number: int) -> PRData:
        try:
            pr = self.repo.get_pull(number=pr_number)
            return PRData(
                number=pr.number,
                head_sha=pr.head.sha,
                created_at=pr.created_at,
                merged=bool(pr.merged),
            )
        except GithubException as e:
            raise GitHubClientError(f"Failed to get PR #{pr_number}: {e}") from e

    # ------------------------------------------------------------------
    # Actions: workflows and runs
    # ------------------------------------------------------------------

    def list_workflows(self) -> list[WorkflowData]:
        try:
            workflows: list[WorkflowData] = []
            for workflow in self.repo.get_workflows():
                self._workflows[workflow.id] = workflow
                workflows.append(
                    WorkflowData(
                        id=workflow.id,
                        name=workflow.name,
                        path=workflow.path,
                        state=workflow.state,
                    )
                )
            return workflows
        except GithubException as e:
            raise GitHubClientError(f"Failed to list workflows: {e}") from e

    def list_workflow_runs(
        self,
        workflow_id: int,
        actor: str,
        event: str = "pull_request",
    ) -> Iterator[WorkflowRunData]:
        """Iterate over a workflow's runs, newest first.

        Pages are requested lazily, so a caller that stops early never
        fetches the remaining pages.
        """
        try:
            workflow = self._workflows.get(workflow_id)
            if workflow is None:
                workflow = self.repo.get_workflow(workflow_id)
                self._workflows[workflow_id] = workflow

            for run in workflow.get_runs(actor=actor, event=event):
                self._runs[run.id] = run
                yield WorkflowRunData(
                    id=run.id,
                    workflow_id=run.workflow_id,
                    head_sha=run.head_sha,
                    created_at=run.created_at,
                    status=run.status,
                    conclusion=run.conclusion,
                )
        except GithubException as e:
            raise GitHubClientError(
                f"Failed to list runs for workflow {workflow_id}: {e}"
            ) from e

    def _get_run(self, run_id: int) -> WorkflowRun:
        run = self._runs.get(run_id)
        if run is None:
            run = self.repo.get_workflow_run(run_id)
            self._runs[run_id] = run
        return run

    def cancel_run(self, run_id: int) -> None:
        try:
            if not self._get_run(run_id).cancel():
                raise GitHubClientError(f"Cancel of run {run_id} was not accepted")
        except GithubException as e:
            raise GitHubClientError(f"Failed to cancel run {run_id}: {e}") from e

    def rerun_run(self, run_id: int) -> None:
        try:
            if not self._get_run(run_id).rerun():
                raise GitHubClientError(f"Rerun of run {run_id} was not accepted")
        except GithubException as e:
            raise GitHubClientError(f"Failed to rerun run {run_id}: {e}") from e

    # ------------------------------------------------------------------
    # Utils
    # ------------------------------------------------------------------

    @staticmethod
    def parse_issue_api_url(url: str) -> tuple[str, int]:
        match = re.search(r"/repos/([^/]+/[^/]+)/issues/(\d+)", url)
        if not match:
            raise GitHubClientError(f"Invalid GitHub issue API URL: {url}")
        return match.group(1), int(match.group(2))

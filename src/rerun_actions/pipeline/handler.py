"""Rerun pipeline run for a single comment."""

import logging
from dataclasses import asdict, dataclass, field

from rerun_actions.github.client import GitHubClient, GitHubClientError
from rerun_actions.pipeline.authorization import AuthorizationGate
from rerun_actions.pipeline.commands import parse_commands
from rerun_actions.pipeline.context import COMMENT_CREATED, CommentContext
from rerun_actions.pipeline.eligibility import is_merged, is_rerunable
from rerun_actions.pipeline.executor import RerunExecutor
from rerun_actions.pipeline.selector import select_runs


logger = logging.getLogger(__name__)


@dataclass
class HandlerResult:
    """Terminal state of one invocation."""

    status: str  # "rerun", "skipped" or "error"
    reason: str = ""
    run_ids: list[int] = field(default_factory=list)
    attempted: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _skipped(reason: str) -> HandlerResult:
    logger.debug(f"Skipping: {reason}")
    return HandlerResult(status="skipped", reason=reason)


def _error(reason: str) -> HandlerResult:
    logger.error(reason)
    return HandlerResult(status="error", reason=reason)


class RerunHandler:
    """Decides which runs a comment should rerun and reruns them.

    Cheap local checks run before any API request; the pull request is
    fetched only once the comment is known to carry commands from an
    authorized commenter on an open, unlocked pull request.
    """

    def __init__(
        self,
        client: GitHubClient,
        gate: AuthorizationGate,
        current_workflow: str | None = None,
        sort_runs: bool = False,
    ):
        """Initialize the handler.

        Args:
            client: GitHub client for the comment's repository
            gate: Authorization gate applied to the comment
            current_workflow: Name or path of the workflow running this code
            sort_runs: Sort runs by creation time instead of trusting API order
        """
        self.client = client
        self.gate = gate
        self.current_workflow = current_workflow
        self.sort_runs = sort_runs

    def handle(self, context: CommentContext) -> HandlerResult:
        if context.action != COMMENT_CREATED:
            return _skipped(f"unsupported action: {context.action}")

        commands = parse_commands(context.body)
        logger.debug(
            f"Raw comment:\n{context.body}\n\nParsed: {sorted(str(c) for c in commands)}"
        )
        if not commands:
            return _skipped("no commands in comment")

        if not is_rerunable(context.issue):
            return _skipped("issue is not a PR or is locked")

        if not self.gate.allows(context):
            return _skipped(f"user {context.author} is not authorized")

        try:
            pr = self.client.get_pr(context.issue.number)
        except GitHubClientError as e:
            return _error(f"Failed to get PR: {e}")

        if is_merged(pr):
            return _skipped("PR has been merged, cannot rerun workflows")

        try:
            workflows = self.client.list_workflows()
            runs = select_runs(
                commands,
                workflows,
                pr,
                context.pr_author,
                self.client.list_workflow_runs,
                current_workflow=self.current_workflow,
                sort_runs=self.sort_runs,
            )
        except GitHubClientError as e:
            return _error(f"Failed to select workflow runs: {e}")

        if not runs:
            return _skipped(f"no workflow runs match PR {pr.number} head {pr.head_sha}")

        execution = RerunExecutor(self.client).execute(runs)
        logger.info(
            f"Reran {execution.attempted - execution.failed}/{execution.attempted} "
            f"workflow runs for {context.repository}#{pr.number}"
        )
        return HandlerResult(
            status="rerun",
            run_ids=[run.id for run in runs],
            attempted=execution.attempted,
            failed=execution.failed,
        )

"""Selection of the workflow runs a command set should rerun."""

import logging
from collections.abc import Callable, Iterable, Sequence

from rerun_actions.github.models import PRData, WorkflowData, WorkflowRunData
from rerun_actions.pipeline.commands import Command


logger = logging.getLogger(__name__)

PULL_REQUEST_EVENT = "pull_request"

# (workflow_id, actor, event) -> runs, newest first
RunLister = Callable[[int, str, str], Iterable[WorkflowRunData]]


def target_workflows(
    commands: Iterable[Command],
    workflows: Sequence[WorkflowData],
) -> list[WorkflowData]:
    """Return the workflows named by the commands, in listing order."""
    commands = frozenset(commands)
    if any(command.rerun_all for command in commands):
        logger.debug("Attempting to rerun all workflows")
        return list(workflows)

    names = {command.workflow for command in commands}
    targets = []
    for workflow in workflows:
        if workflow.name in names:
            logger.debug(f"Workflow {workflow.name} found")
            targets.append(workflow)
        else:
            logger.debug(f"Workflow {workflow.name} not requested")
    return targets


def is_current_workflow(workflow: WorkflowData, current_workflow: str | None) -> bool:
    """Return True if the workflow is the one executing this code."""
    if not current_workflow:
        return False
    return current_workflow in (workflow.name, workflow.path)


def find_matching_run(
    runs: Iterable[WorkflowRunData],
    pr: PRData,
) -> WorkflowRunData | None:
    """Find the newest run built from the PR's head commit.

    Runs must be ordered newest first. Scanning stops at the first run older
    than the pull request.
    """
    for run in runs:
        if run.created_at < pr.created_at:
            logger.debug(f"Older workflow run than PR {pr.number} found")
            return None
        if run.head_sha == pr.head_sha:
            logger.debug(f"Found run {run.id} matching PR {pr.number} SHA {pr.head_sha}")
            return run
    return None


def select_runs(
    commands: Iterable[Command],
    workflows: Sequence[WorkflowData],
    pr: PRData,
    pr_author: str,
    list_runs: RunLister,
    current_workflow: str | None = None,
    sort_runs: bool = False,
) -> list[WorkflowRunData]:
    """Select at most one run per requested workflow to rerun.

    Args:
        commands: Parsed commands
        workflows: All workflows of the repository, in listing order
        pr: Pull request snapshot
        pr_author: Login of the PR author, used to filter runs server-side
        list_runs: Run source, called once per eligible workflow
        current_workflow: Name or path of the workflow running this code
        sort_runs: Sort each workflow's runs newest first before scanning

    Returns:
        Selected runs in workflow listing order

    Raises:
        GitHubClientError: If listing runs fails
    """
    selected: list[WorkflowRunData] = []

    for workflow in target_workflows(commands, workflows):
        logger.debug(f"Workflow name: {workflow.name} ({workflow.path})")
        if is_current_workflow(workflow, current_workflow):
            logger.debug("Skipping the rerun workflow")
            continue
        if not workflow.is_active:
            logger.debug(f"Inactive workflow: {workflow.name}")
            continue

        runs = list_runs(workflow.id, pr_author, PULL_REQUEST_EVENT)
        if sort_runs:
            runs = sorted(runs, key=lambda run: run.created_at, reverse=True)

        run = find_matching_run(runs, pr)
        if run is not None:
            selected.append(run)

    return selected

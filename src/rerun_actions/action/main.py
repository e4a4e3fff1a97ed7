"""Entry point for running as a GitHub Action step.

The step is triggered by an ``issue_comment`` workflow. The comment is
fetched by the ``comment_id`` input when one is given, and otherwise read
from the event payload at ``GITHUB_EVENT_PATH``.
"""

import json
import logging
import os
import sys
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import SettingsError

from rerun_actions.action.inputs import ActionInputs
from rerun_actions.action.log import configure_action_logging
from rerun_actions.github.client import GitHubClient, GitHubClientError
from rerun_actions.pipeline.authorization import ConfigurationError
from rerun_actions.pipeline.context import (
    CommentContext,
    InvalidEventError,
    context_from_comment_id,
    context_from_event,
)
from rerun_actions.pipeline.handler import HandlerResult, RerunHandler


logger = logging.getLogger(__name__)


def load_inputs() -> ActionInputs:
    """Read and validate the action inputs.

    Raises:
        ConfigurationError: If an input cannot be parsed
    """
    try:
        return ActionInputs()
    except (ValidationError, SettingsError) as e:
        raise ConfigurationError(f"Invalid action inputs: {e}") from e


def load_event(path: str) -> dict:
    """Load the event payload the workflow was triggered with.

    Raises:
        ConfigurationError: If the file is missing or not JSON
    """
    event_path = Path(path)
    if not event_path.exists():
        raise ConfigurationError(f"GitHub event payload not found: {event_path}")
    try:
        with event_path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse event payload: {e}") from e


def set_outputs(result: HandlerResult) -> None:
    """Write step outputs to ``GITHUB_OUTPUT`` when running on a runner."""
    outputs = {
        "status": result.status,
        "attempted": str(result.attempted),
        "failed": str(result.failed),
        "run_ids": ",".join(str(run_id) for run_id in result.run_ids),
    }
    output_file = os.environ.get("GITHUB_OUTPUT")
    if output_file is None:
        return
    with open(output_file, "a", encoding="utf8") as f:
        for key, value in outputs.items():
            f.write(f"{key}={value}{os.linesep}")


def build_context(inputs: ActionInputs, client: GitHubClient) -> CommentContext | None:
    """Resolve the triggering comment.

    Returns:
        The comment context, or None if fetching it failed

    Raises:
        ConfigurationError: If no comment identifier is available
    """
    if inputs.comment_id is not None:
        try:
            return context_from_comment_id(client, inputs.comment_id)
        except GitHubClientError as e:
            logger.error(f"Failed to get comment: {e}")
            return None

    event_path = os.environ.get("GITHUB_EVENT_PATH")
    if not event_path:
        raise ConfigurationError("Empty comment_id and GITHUB_EVENT_PATH not set")
    try:
        return context_from_event(load_event(event_path))
    except InvalidEventError as e:
        raise ConfigurationError(f"Event is not an issue comment: {e}") from e


def run() -> HandlerResult:
    """Run the rerun pipeline for the comment that triggered the workflow.

    Raises:
        ConfigurationError: On any fatal configuration problem
    """
    inputs = load_inputs()
    gate = inputs.build_gate()

    if not inputs.repo_token:
        raise ConfigurationError("Empty repo_token")

    repository = os.environ.get("GITHUB_REPOSITORY", "")
    if not repository:
        raise ConfigurationError("GITHUB_REPOSITORY not set")

    try:
        client = GitHubClient(
            token=inputs.repo_token,
            repo_name=repository,
            base_url=os.environ.get("GITHUB_API_URL") or None,
        )
    except GitHubClientError as e:
        raise ConfigurationError(str(e)) from e

    logger.debug(f"Repo {repository} commentID={inputs.comment_id}")

    context = build_context(inputs, client)
    if context is None:
        return HandlerResult(status="error", reason="failed to fetch comment")

    handler = RerunHandler(
        client,
        gate,
        current_workflow=os.environ.get("GITHUB_WORKFLOW") or None,
        sort_runs=inputs.sort_workflow_runs,
    )
    return handler.handle(context)


def main() -> int:
    """Main entry point."""
    configure_action_logging()

    try:
        result = run()
    except ConfigurationError as e:
        logger.critical(str(e))
        return 1

    set_outputs(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())

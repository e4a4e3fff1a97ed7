"""Checks on whether an issue or pull request may have its runs rerun."""

from rerun_actions.github.models import IssueData, PRData


def is_rerunable(issue: IssueData) -> bool:
    # Only unlocked pull requests.
    return issue.is_pull_request and not issue.locked


def is_merged(pr: PRData) -> bool:
    return pr.merged

"""Comment context shared by the webhook and Action entry points."""

from dataclasses import dataclass

from rerun_actions.github.client import GitHubClient
from rerun_actions.github.models import IssueData


# Only newly created comments trigger reruns; edits and deletions do not.
COMMENT_CREATED = "created"


class InvalidEventError(ValueError):
    """Raised when an event payload lacks the fields a comment context needs."""


@dataclass(frozen=True)
class CommentContext:
    """Everything the pipeline needs to know about a triggering comment."""

    repository: str
    comment_id: int
    body: str
    author: str
    author_association: str | None
    issue: IssueData
    action: str = COMMENT_CREATED

    @property
    def pr_author(self) -> str:
        """Login of whoever opened the pull request."""
        return self.issue.author


def _issue_from_payload(issue: dict) -> IssueData:
    return IssueData(
        number=issue["number"],
        is_pull_request="pull_request" in issue,
        locked=bool(issue.get("locked", False)),
        labels=frozenset(label.get("name", "") for label in issue.get("labels", [])),
        author=(issue.get("user") or {}).get("login", ""),
    )


def context_from_event(payload: dict) -> CommentContext:
    """Build a context from an inline ``issue_comment`` event payload.

    Args:
        payload: Webhook body or the contents of ``GITHUB_EVENT_PATH``

    Returns:
        CommentContext for the comment in the payload

    Raises:
        InvalidEventError: If the payload is not an issue comment event
    """
    comment = payload.get("comment")
    issue = payload.get("issue")
    repository = (payload.get("repository") or {}).get("full_name", "")
    if not comment or not issue or not repository:
        raise InvalidEventError("Payload is missing comment, issue or repository")

    try:
        return CommentContext(
            repository=repository,
            comment_id=comment["id"],
            body=comment.get("body") or "",
            author=(comment.get("user") or {}).get("login", ""),
            author_association=comment.get("author_association"),
            issue=_issue_from_payload(issue),
            action=payload.get("action", COMMENT_CREATED),
        )
    except KeyError as e:
        raise InvalidEventError(f"Payload is missing field {e}") from e


def context_from_comment_id(client: GitHubClient, comment_id: int) -> CommentContext:
    """Build a context by fetching a comment and its parent issue.

    Raises:
        GitHubClientError: If the comment or issue cannot be fetched
    """
    comment = client.get_comment(comment_id)
    issue = client.get_issue_for_comment(comment)
    return CommentContext(
        repository=client.repo_name or "",
        comment_id=comment.id,
        body=comment.body,
        author=comment.author,
        author_association=comment.author_association,
        issue=issue,
    )

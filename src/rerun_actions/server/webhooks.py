"""Webhook handlers for GitHub events."""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from enum import Enum

import httpx
from fastapi import HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from rerun_actions.github.client import GitHubClient, GitHubClientError
from rerun_actions.pipeline.authorization import AuthorizationGate
from rerun_actions.pipeline.context import (
    COMMENT_CREATED,
    InvalidEventError,
    context_from_event,
)
from rerun_actions.pipeline.handler import RerunHandler
from rerun_actions.server.config import Settings
from rerun_actions.server.github_app import GitHubAppAuth


logger = logging.getLogger(__name__)


class WebhookEvent(str, Enum):
    """Supported webhook events."""

    ISSUE_COMMENT = "issue_comment"
    PING = "ping"


@dataclass
class WebhookPayload:
    """Parsed webhook payload."""

    event: str
    action: str
    installation_id: int
    repository: str
    sender: str
    data: dict


def verify_webhook_signature(settings: Settings, request: Request, body: bytes) -> bool:
    """Verify the webhook signature from GitHub.

    Args:
        settings: Server settings holding the webhook secret
        request: FastAPI request
        body: Raw request body

    Returns:
        True if signature is valid

    Raises:
        HTTPException: If signature is invalid
    """
    if not settings.github_webhook_secret:
        logger.warning("Webhook secret not configured, skipping verification")
        return True

    signature_header = request.headers.get("X-Hub-Signature-256", "")
    if not signature_header:
        raise HTTPException(status_code=401, detail="Missing signature header")

    expected_signature = (
        "sha256="
        + hmac.new(
            settings.github_webhook_secret.encode(),
            body,
            hashlib.sha256,
        ).hexdigest()
    )

    if not hmac.compare_digest(signature_header, expected_signature):
        raise HTTPException(status_code=401, detail="Invalid signature")

    return True


def parse_webhook_payload(event_type: str, payload: dict) -> WebhookPayload:
    """Parse a webhook payload into a structured format.

    Args:
        event_type: GitHub event type
        payload: Raw payload dictionary

    Returns:
        Parsed WebhookPayload
    """
    return WebhookPayload(
        event=event_type,
        action=payload.get("action", ""),
        installation_id=(payload.get("installation") or {}).get("id", 0),
        repository=(payload.get("repository") or {}).get("full_name", ""),
        sender=(payload.get("sender") or {}).get("login", ""),
        data=payload,
    )


async def get_token(settings: Settings, payload: WebhookPayload) -> str:
    """Get a token able to act on the payload's repository.

    Raises:
        GitHubClientError: If no token can be obtained
    """
    if not settings.uses_github_app:
        return settings.github_token

    if not payload.installation_id:
        raise GitHubClientError("Delivery carries no installation ID")

    try:
        return await GitHubAppAuth(settings).get_installation_token(payload.installation_id)
    except httpx.HTTPError as e:
        raise GitHubClientError(f"Failed to get installation token: {e}") from e


async def handle_issue_comment_event(
    payload: WebhookPayload,
    settings: Settings,
    gate: AuthorizationGate,
) -> dict:
    """Handle issue_comment events by rerunning the workflows they request.

    Args:
        payload: Webhook payload
        settings: Server settings
        gate: Authorization gate built at startup

    Returns:
        Result dictionary
    """
    if payload.action != COMMENT_CREATED:
        return {"status": "skipped", "reason": f"unsupported action: {payload.action}"}

    try:
        context = context_from_event(payload.data)
    except InvalidEventError as e:
        logger.error(f"Invalid issue_comment payload: {e}")
        return {"status": "error", "reason": str(e)}

    logger.debug(
        f"Comment {context.comment_id} on {context.repository}#{context.issue.number} "
        f"by {context.author}"
    )

    try:
        token = await get_token(settings, payload)
        client = GitHubClient(
            token=token,
            repo_name=context.repository,
            base_url=settings.github_api_url or None,
        )
    except GitHubClientError as e:
        logger.error(f"Failed to create GitHub client: {e}")
        return {"status": "error", "reason": str(e)}

    handler = RerunHandler(
        client,
        gate,
        current_workflow=settings.github_workflow or None,
        sort_runs=settings.sort_workflow_runs,
    )
    result = await run_in_threadpool(handler.handle, context)
    return result.to_dict()


async def handle_webhook(
    event_type: str,
    payload: dict,
    settings: Settings,
    gate: AuthorizationGate,
) -> dict:
    """Main webhook handler that routes to specific handlers.

    Args:
        event_type: GitHub event type
        payload: Webhook payload
        settings: Server settings
        gate: Authorization gate built at startup

    Returns:
        Handler result
    """
    parsed = parse_webhook_payload(event_type, payload)

    logger.info(
        f"Received webhook: {event_type}/{parsed.action} "
        f"from {parsed.repository or 'N/A'} by {parsed.sender}"
    )

    if event_type == WebhookEvent.ISSUE_COMMENT:
        return await handle_issue_comment_event(parsed, settings, gate)

    logger.debug(f"Ignoring event type: {event_type}")
    return {"status": "ignored", "event": event_type}

"""FastAPI application for GitHub webhook handling."""

import logging
from contextlib import asynccontextmanager

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request

from rerun_actions import __version__
from rerun_actions.pipeline.authorization import AuthorizationGate
from rerun_actions.server.config import Settings, get_settings
from rerun_actions.server.webhooks import (
    WebhookEvent,
    handle_webhook,
    verify_webhook_signature,
)


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Credentials and the authorization gate are checked here, so a bad
    configuration stops the server before it accepts any delivery.

    Args:
        settings: Server settings (uses default if not provided)

    Returns:
        Configured FastAPI app

    Raises:
        ConfigurationError: If credentials or authorization settings are invalid
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    settings.check_credentials()
    gate = settings.build_gate()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting rerun-actions webhook server on {settings.host}:{settings.port}")
        if settings.uses_github_app:
            logger.info(f"GitHub App ID: {settings.github_app_id}")
        logger.info(
            f"Authorization gates: {', '.join(settings.authorization_gates)} "
            f"({settings.authorization_mode})"
        )
        yield
        logger.info("Shutting down rerun-actions webhook server")

    app = FastAPI(
        title="rerun-actions",
        description="Rerun GitHub Actions workflows from pull request comments",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.gate = gate

    @app.get("/")
    async def root():
        """Root endpoint with app info."""
        return {
            "name": "rerun-actions",
            "version": __version__,
            "status": "running",
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.post("/webhook")
    async def webhook(request: Request, background_tasks: BackgroundTasks):
        """GitHub webhook endpoint."""
        body = await request.body()

        verify_webhook_signature(settings, request, body)

        try:
            payload = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON payload")

        event_type = request.headers.get("X-GitHub-Event", "")
        if not event_type:
            raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

        if event_type == WebhookEvent.PING:
            return {"status": "pong", "zen": payload.get("zen", "")}

        background_tasks.add_task(process_webhook_async, event_type, payload, settings, gate)

        return {
            "status": "accepted",
            "event": event_type,
            "action": payload.get("action", ""),
        }

    return app


async def process_webhook_async(
    event_type: str,
    payload: dict,
    settings: Settings,
    gate: AuthorizationGate,
):
    """Process webhook after the response has been sent.

    Args:
        event_type: GitHub event type
        payload: Webhook payload
        settings: Server settings
        gate: Authorization gate built at startup
    """
    try:
        result = await handle_webhook(event_type, payload, settings, gate)
        logger.info(f"Webhook processed: {result}")
    except Exception as e:
        logger.exception(f"Error processing webhook: {e}")

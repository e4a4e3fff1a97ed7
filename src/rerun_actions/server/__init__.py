"""rerun-actions webhook server."""

from rerun_actions.server.app import create_app
from rerun_actions.server.config import Settings

__all__ = ["create_app", "Settings"]

"""GitHub Action entry point."""

from rerun_actions.action.inputs import ActionInputs
from rerun_actions.action.main import main, run

__all__ = ["ActionInputs", "main", "run"]

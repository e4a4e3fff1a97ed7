"""Comment parsing, authorization and run selection for workflow reruns."""

from rerun_actions.pipeline.authorization import (
    AuthorizationGate,
    ConfigurationError,
    UserPolicy,
    build_gate,
    has_rerun_label,
    is_authorized,
    is_privileged_association,
)
from rerun_actions.pipeline.commands import RERUN_ALL, Command, parse_commands, rerun_workflow
from rerun_actions.pipeline.context import (
    CommentContext,
    InvalidEventError,
    context_from_comment_id,
    context_from_event,
)
from rerun_actions.pipeline.eligibility import is_merged, is_rerunable
from rerun_actions.pipeline.executor import ExecutionResult, RerunExecutor
from rerun_actions.pipeline.handler import HandlerResult, RerunHandler
from rerun_actions.pipeline.selector import select_runs

__all__ = [
    "AuthorizationGate",
    "ConfigurationError",
    "UserPolicy",
    "build_gate",
    "has_rerun_label",
    "is_authorized",
    "is_privileged_association",
    "RERUN_ALL",
    "Command",
    "parse_commands",
    "rerun_workflow",
    "CommentContext",
    "InvalidEventError",
    "context_from_comment_id",
    "context_from_event",
    "is_merged",
    "is_rerunable",
    "ExecutionResult",
    "RerunExecutor",
    "HandlerResult",
    "RerunHandler",
    "select_runs",
]

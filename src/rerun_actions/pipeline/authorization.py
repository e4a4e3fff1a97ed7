"""Authorization gates deciding who may trigger a rerun."""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from rerun_actions.github.models import IssueData
from rerun_actions.pipeline.context import CommentContext


PRIVILEGED_ASSOCIATIONS = frozenset({"collaborator", "contributor", "member", "owner"})

DEFAULT_RERUN_LABELS = ("ok-to-test",)


class ConfigurationError(Exception):
    """Raised when configuration is invalid. Fatal at startup."""


@dataclass(frozen=True)
class UserPolicy:
    """Compiled allow and deny patterns applied to a commenter's login."""

    allow: tuple[re.Pattern[str], ...] = ()
    deny: tuple[re.Pattern[str], ...] = ()

    @classmethod
    def from_patterns(
        cls,
        allow: Iterable[str] = (),
        deny: Iterable[str] = (),
    ) -> "UserPolicy":
        """Compile pattern strings into a policy.

        Raises:
            ConfigurationError: If any pattern is not a valid regular expression
        """
        return cls(
            allow=_compile_all(allow, "allow"),
            deny=_compile_all(deny, "deny"),
        )


def _compile_all(patterns: Iterable[str], kind: str) -> tuple[re.Pattern[str], ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigurationError(
                f"Failed to parse {kind} user regexp {pattern!r}: {e}"
            ) from e
    return tuple(compiled)


def is_authorized(login: str, policy: UserPolicy) -> bool:
    """Check a login against a user policy.

    Every allow pattern must match, and no deny pattern may match.
    """
    for allow in policy.allow:
        if not allow.search(login):
            return False
    for deny in policy.deny:
        if deny.search(login):
            return False
    return True


def is_privileged_association(association: str | None) -> bool:
    """Return True for author associations trusted to trigger reruns."""
    return bool(association) and association.lower() in PRIVILEGED_ASSOCIATIONS


def has_rerun_label(issue: IssueData, labels: Iterable[str] = DEFAULT_RERUN_LABELS) -> bool:
    """Return True if the issue carries any label granting rerun permission."""
    return not issue.labels.isdisjoint(labels)


class GateMode(str, Enum):
    """How enabled gates combine."""

    ANY = "any"
    ALL = "all"


class GateName(str, Enum):
    """Gates that can be enabled through configuration."""

    LABEL = "label"
    ASSOCIATION = "association"
    USER_POLICY = "user_policy"


class AuthorizationGate(ABC):
    """A yes/no decision on whether a comment may trigger reruns."""

    name: str = "gate"

    @abstractmethod
    def allows(self, context: CommentContext) -> bool:
        """Return True if the comment may trigger reruns."""


class LabelGate(AuthorizationGate):
    """Passes when the issue carries an ok-to-test label."""

    name = GateName.LABEL.value

    def __init__(self, labels: Iterable[str] = DEFAULT_RERUN_LABELS):
        self.labels = frozenset(labels)

    def allows(self, context: CommentContext) -> bool:
        return has_rerun_label(context.issue, self.labels)


class AssociationGate(AuthorizationGate):
    """Passes when the commenter has a privileged association."""

    name = GateName.ASSOCIATION.value

    def allows(self, context: CommentContext) -> bool:
        return is_privileged_association(context.author_association)


class UserPolicyGate(AuthorizationGate):
    """Passes when the commenter's login satisfies the allow/deny policy."""

    name = GateName.USER_POLICY.value

    def __init__(self, policy: UserPolicy):
        self.policy = policy

    def allows(self, context: CommentContext) -> bool:
        return is_authorized(context.author, self.policy)


class AnyGate(AuthorizationGate):
    """Passes when at least one member gate passes."""

    name = GateMode.ANY.value

    def __init__(self, gates: Sequence[AuthorizationGate]):
        self.gates = tuple(gates)

    def allows(self, context: CommentContext) -> bool:
        return any(gate.allows(context) for gate in self.gates)


class AllGate(AuthorizationGate):
    """Passes when every member gate passes."""

    name = GateMode.ALL.value

    def __init__(self, gates: Sequence[AuthorizationGate]):
        self.gates = tuple(gates)

    def allows(self, context: CommentContext) -> bool:
        return all(gate.allows(context) for gate in self.gates)


def build_gate(
    gate_names: Iterable[str],
    mode: str = GateMode.ANY.value,
    policy: UserPolicy | None = None,
    labels: Iterable[str] = DEFAULT_RERUN_LABELS,
) -> AuthorizationGate:
    """Build the combined gate for a deployment.

    Args:
        gate_names: Names of the gates to enable (see GateName)
        mode: "any" or "all"
        policy: User policy for the user_policy gate
        labels: Labels accepted by the label gate

    Returns:
        Combined authorization gate

    Raises:
        ConfigurationError: On unknown gate names or modes, or no gates
    """
    gates: list[AuthorizationGate] = []
    for raw_name in gate_names:
        try:
            name = GateName(raw_name)
        except ValueError as e:
            raise ConfigurationError(f"Unknown authorization gate: {raw_name}") from e

        if name is GateName.LABEL:
            gates.append(LabelGate(labels))
        elif name is GateName.ASSOCIATION:
            gates.append(AssociationGate())
        else:
            gates.append(UserPolicyGate(policy or UserPolicy()))

    if not gates:
        raise ConfigurationError("At least one authorization gate must be enabled")

    try:
        gate_mode = GateMode(mode)
    except ValueError as e:
        raise ConfigurationError(f"Unknown authorization mode: {mode}") from e

    if gate_mode is GateMode.ALL:
        return AllGate(gates)
    return AnyGate(gates)

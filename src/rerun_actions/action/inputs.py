"""Inputs of the GitHub Action, read from ``INPUT_*`` environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from rerun_actions.pipeline.authorization import (
    AuthorizationGate,
    UserPolicy,
    build_gate,
)


class ActionInputs(BaseSettings):
    """Action inputs.

    List inputs are JSON arrays, e.g. ``'["^dependabot", "bot$"]'``.
    Unset inputs arrive as empty strings and fall back to the defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        env_ignore_empty=True,
        extra="ignore",
    )

    repo_token: str = ""
    comment_id: int | None = None

    allow_user_regexp_list: list[str] = []
    deny_user_regexp_list: list[str] = []
    authorization_gates: list[str] = ["label", "user_policy"]
    authorization_mode: str = "all"
    ok_to_test_labels: list[str] = ["ok-to-test"]

    sort_workflow_runs: bool = False

    def build_gate(self) -> AuthorizationGate:
        """Build the authorization gate.

        Raises:
            ConfigurationError: If a pattern or gate setting is invalid
        """
        return build_gate(
            self.authorization_gates,
            mode=self.authorization_mode,
            policy=UserPolicy.from_patterns(
                self.allow_user_regexp_list, self.deny_user_regexp_list
            ),
            labels=self.ok_to_test_labels,
        )

"""Configuration for the webhook server."""

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rerun_actions.pipeline.authorization import (
    AuthorizationGate,
    ConfigurationError,
    UserPolicy,
    build_gate,
)


class AppConfiguration(BaseModel):
    """The YAML ``app_configuration`` section; keys that are set override settings."""

    model_config = ConfigDict(extra="ignore")

    allow_user_regexp_list: list[str] = []
    deny_user_regexp_list: list[str] = []
    authorization_gates: list[str] = ["user_policy"]
    authorization_mode: str = "any"
    ok_to_test_labels: list[str] = ["ok-to-test"]


def load_app_configuration(path: Path) -> dict:
    """Read the ``app_configuration`` section of a YAML config file.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML, or the
            section holds values of the wrong type
    """
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed parsing configuration file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must be a mapping")
    section = data.get("app_configuration") or {}
    if not isinstance(section, dict):
        raise ConfigurationError("app_configuration must be a mapping")
    try:
        config = AppConfiguration.model_validate(section)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid app_configuration in {path}: {e}") from e
    return config.model_dump(exclude_unset=True)


class Settings(BaseSettings):
    """Server configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    # GitHub App settings
    github_app_id: int | None = None
    github_app_private_key: str = ""
    github_app_private_key_path: str = ""
    github_webhook_secret: str = ""

    # Static token, used when no GitHub App is configured
    github_token: str = ""
    github_api_url: str = ""

    # Authorization
    allow_user_regexp_list: list[str] = []
    deny_user_regexp_list: list[str] = []
    authorization_gates: list[str] = ["user_policy"]
    authorization_mode: str = "any"
    ok_to_test_labels: list[str] = ["ok-to-test"]

    # Run selection
    github_workflow: str = ""
    sort_workflow_runs: bool = False

    # Optional YAML file with an app_configuration section
    config_file: str = ""

    # Logging
    log_level: str = "INFO"

    @model_validator(mode="after")
    def apply_config_file(self) -> "Settings":
        """Merge the YAML config file and check patterns and gates compile."""
        try:
            if self.config_file:
                for key, value in load_app_configuration(Path(self.config_file)).items():
                    setattr(self, key, value)
            self.build_gate()
        except ConfigurationError as e:
            raise ValueError(str(e)) from e
        return self

    def build_user_policy(self) -> UserPolicy:
        return UserPolicy.from_patterns(
            self.allow_user_regexp_list, self.deny_user_regexp_list
        )

    def build_gate(self) -> AuthorizationGate:
        """Build the authorization gate for this deployment."""
        return build_gate(
            self.authorization_gates,
            mode=self.authorization_mode,
            policy=self.build_user_policy(),
            labels=self.ok_to_test_labels,
        )

    @property
    def uses_github_app(self) -> bool:
        return self.github_app_id is not None

    def check_credentials(self) -> None:
        """Ensure some way to authenticate against GitHub is configured.

        Raises:
            ConfigurationError: If neither a GitHub App nor a token is set
        """
        if self.uses_github_app:
            self.get_private_key()
        elif not self.github_token:
            raise ConfigurationError(
                "No GitHub credentials configured. "
                "Set GITHUB_APP_ID with a private key, or GITHUB_TOKEN"
            )

    def get_private_key(self) -> str:
        """Get the GitHub App private key."""
        if self.github_app_private_key:
            return self.github_app_private_key

        if self.github_app_private_key_path:
            key_path = Path(self.github_app_private_key_path)
            if key_path.exists():
                return key_path.read_text()

        raise ConfigurationError(
            "GitHub App private key not configured. "
            "Set GITHUB_APP_PRIVATE_KEY or GITHUB_APP_PRIVATE_KEY_PATH"
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

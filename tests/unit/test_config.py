"""Unit tests for server settings."""

import pytest
from pydantic import ValidationError
from unittest.mock import patch

from rerun_actions.pipeline.authorization import AllGate, AnyGate, ConfigurationError
from rerun_actions.server.config import Settings, load_app_configuration


CONFIG_YAML = """
server:
  address: 0.0.0.0
  port: 8080
github:
  v3_api_url: https://api.github.com/
app_configuration:
  allow_user_regexp_list:
    - "^team-"
  deny_user_regexp_list:
    - "-bot$"
  unknown_key: ignored
"""


class TestSettings:
    """Tests for Settings defaults and validation."""

    def test_defaults(self):
        settings = Settings(github_token="t")
        assert settings.port == 8080
        assert settings.authorization_gates == ["user_policy"]
        assert isinstance(settings.build_gate(), AnyGate)

    def test_lists_from_environment(self):
        env = {
            "ALLOW_USER_REGEXP_LIST": '["^alice$"]',
            "AUTHORIZATION_GATES": '["label", "user_policy"]',
            "AUTHORIZATION_MODE": "all",
        }
        with patch.dict("os.environ", env):
            settings = Settings(github_token="t")

        assert settings.allow_user_regexp_list == ["^alice$"]
        assert isinstance(settings.build_gate(), AllGate)

    def test_malformed_regexp_fails_at_load(self):
        with pytest.raises(ValidationError, match="deny user regexp"):
            Settings(github_token="t", deny_user_regexp_list=["(unclosed"])

    def test_unknown_gate_fails_at_load(self):
        with pytest.raises(ValidationError, match="Unknown authorization gate"):
            Settings(github_token="t", authorization_gates=["vibes"])

    def test_private_key_from_path(self, tmp_path):
        key_file = tmp_path / "key.pem"
        key_file.write_text("PRIVATE")
        settings = Settings(github_app_id=1, github_app_private_key_path=str(key_file))

        assert settings.get_private_key() == "PRIVATE"
        settings.check_credentials()

    def test_missing_private_key(self):
        settings = Settings(github_app_id=1)
        with pytest.raises(ConfigurationError, match="private key"):
            settings.check_credentials()


class TestConfigFile:
    """Tests for the YAML app_configuration section."""

    def test_load_app_configuration(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(CONFIG_YAML)

        section = load_app_configuration(path)

        assert section == {
            "allow_user_regexp_list": ["^team-"],
            "deny_user_regexp_list": ["-bot$"],
        }

    def test_settings_use_config_file(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(CONFIG_YAML)

        settings = Settings(github_token="t", config_file=str(path))
        policy = settings.build_user_policy()

        assert [p.pattern for p in policy.allow] == ["^team-"]
        assert [p.pattern for p in policy.deny] == ["-bot$"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_app_configuration(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("app_configuration: [unclosed")
        with pytest.raises(ConfigurationError, match="Failed parsing"):
            load_app_configuration(path)

    def test_bad_pattern_in_file_fails_at_load(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("app_configuration:\n  allow_user_regexp_list: ['[']\n")
        with pytest.raises(ValidationError):
            Settings(github_token="t", config_file=str(path))

    def test_scalar_list_value_is_rejected(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("app_configuration:\n  deny_user_regexp_list: 'bot$'\n")

        with pytest.raises(ConfigurationError, match="deny_user_regexp_list"):
            load_app_configuration(path)
        with pytest.raises(ValidationError, match="deny_user_regexp_list"):
            Settings(github_token="t", config_file=str(path))

    def test_non_string_pattern_is_rejected(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("app_configuration:\n  allow_user_regexp_list: [123]\n")

        with pytest.raises(ConfigurationError, match="allow_user_regexp_list"):
            load_app_configuration(path)
        with pytest.raises(ValidationError):
            Settings(github_token="t", config_file=str(path))

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_app_configuration(path)

"""
Unit tests for the unified configuration.

Tests cover:
- Code defaults
- JSON file precedence over defaults
- Environment overrides and type conversion
- Secrets handling
"""

import json

import pytest

from src.utils.config import ConfigError, UnifiedConfig

OVERRIDE_VARS = ("THOUGHTS_DB_PATH", "DB_TIMEOUT", "LOG_LEVEL", "DEFAULT_CURRENCY",
                 "CLOSE_MATCH_LIMIT", "DEBUG_MODE", "CRM_SERVICE_TOKEN", "ANTHROPIC_API_KEY")


@pytest.fixture
def clean_env(monkeypatch):
    for name in OVERRIDE_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestUnifiedConfig:
    """Test UnifiedConfig"""

    def test_code_defaults(self, clean_env, tmp_path):
        settings = UnifiedConfig(config_file=str(tmp_path / "none.json"), load_env_file=False)

        assert settings.default_currency == "EUR"
        assert settings.close_match_limit == 3
        assert settings.min_organization_name_length == 2
        assert settings.search_limit == 20
        assert settings.parser_min_amount == 100
        assert settings.thoughts_db_path == "agent_thoughts.db"
        assert settings.debug_mode is False

    def test_json_file_overrides_defaults(self, clean_env, tmp_path):
        config_file = tmp_path / "system_config.json"
        config_file.write_text(json.dumps({"tools": {"default_currency": "USD"}}))

        settings = UnifiedConfig(config_file=str(config_file), load_env_file=False)

        assert settings.default_currency == "USD"
        # Sibling keys survive the merge
        assert settings.close_match_limit == 3

    def test_invalid_json_falls_back_to_defaults(self, clean_env, tmp_path):
        config_file = tmp_path / "system_config.json"
        config_file.write_text("{not json")

        settings = UnifiedConfig(config_file=str(config_file), load_env_file=False)

        assert settings.default_currency == "EUR"

    def test_env_overrides_file(self, clean_env, tmp_path):
        config_file = tmp_path / "system_config.json"
        config_file.write_text(json.dumps({"tools": {"default_currency": "USD"}}))
        clean_env.setenv("DEFAULT_CURRENCY", "GBP")
        clean_env.setenv("CLOSE_MATCH_LIMIT", "5")
        clean_env.setenv("DB_TIMEOUT", "2.5")
        clean_env.setenv("DEBUG_MODE", "true")

        settings = UnifiedConfig(config_file=str(config_file), load_env_file=False)

        assert settings.default_currency == "GBP"
        assert settings.close_match_limit == 5
        assert settings.db_timeout == 2.5
        assert settings.debug_mode is True

    def test_get_with_dot_path(self, test_settings):
        assert test_settings.get("tools.search_limit") == 20
        assert test_settings.get("tools.missing", "fallback") == "fallback"
        assert test_settings.get("tools.search_limit.deeper") is None

    def test_defaults_are_not_shared(self, clean_env, tmp_path):
        first = UnifiedConfig(config_file=str(tmp_path / "none.json"), load_env_file=False)
        first._config["tools"]["default_currency"] = "CHF"

        second = UnifiedConfig(config_file=str(tmp_path / "none.json"), load_env_file=False)

        assert second.default_currency == "EUR"

    def test_secrets(self, clean_env, tmp_path):
        clean_env.setenv("CRM_SERVICE_TOKEN", "secret")

        settings = UnifiedConfig(config_file=str(tmp_path / "none.json"), load_env_file=False)

        assert settings.has_secret("crm_service_token")
        assert settings.get_secret("crm_service_token") == "secret"
        assert settings.get_secret("anthropic_api_key", required=False) is None
        with pytest.raises(ConfigError):
            settings.get_secret("anthropic_api_key")

"""Unified configuration system with clear precedence and secrets handling."""

import os
import json
from typing import Dict, Any, Optional, Union
from pathlib import Path

from dotenv import load_dotenv


# Import logger lazily to avoid circular imports
logger = None

def _get_logger():
    """Lazy logger initialization to avoid circular imports."""
    global logger
    if logger is None:
        from ..logging import get_smart_logger
        logger = get_smart_logger("system")
    return logger


class ConfigError(Exception):
    """Configuration-related errors."""
    pass


class UnifiedConfig:
    """Unified configuration with clear precedence:

    Precedence (highest to lowest):
    1. Environment variables (a local .env file is loaded first)
    2. system_config.json
    3. Code defaults

    Secrets are handled separately and only come from environment variables.
    """

    def __init__(self, config_file: str = "system_config.json", load_env_file: bool = True):
        self._config_file = config_file
        self._config = {}
        self._secrets = {}
        self._defaults = self._get_code_defaults()

        if load_env_file:
            load_dotenv()

        self._load_json_config()
        self._load_secrets()
        self._apply_env_overrides()

        _get_logger().info("unified_config_loaded",
                           config_file=config_file,
                           secrets_loaded=len(self._secrets),
                           config_sections=list(self._config.keys()))

    def _get_code_defaults(self) -> Dict[str, Any]:
        """Code defaults as fallback."""
        return {
            "database": {
                "thoughts_path": "agent_thoughts.db",
                "timeout": 30
            },
            "logging": {
                "level": "INFO",
                "external_logs_dir": "logs"
            },
            "tools": {
                "default_currency": "EUR",
                "close_match_limit": 3,
                "min_organization_name_length": 2,
                "search_limit": 20
            },
            "parser": {
                "min_amount": 100
            }
        }

    def _load_json_config(self):
        """Load configuration from JSON file."""
        config_path = Path(self._config_file)
        if not config_path.exists():
            _get_logger().info("config_file_not_found",
                               path=str(config_path),
                               using_defaults=True)
            self._config = self._deep_merge(self._defaults, {})
            return

        try:
            with open(config_path, 'r') as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            _get_logger().error("config_file_load_error",
                                path=str(config_path),
                                error=str(e),
                                error_type=type(e).__name__,
                                using_defaults=True)
            self._config = self._deep_merge(self._defaults, {})
            return

        # File config takes precedence over defaults
        self._config = self._deep_merge(self._defaults, file_config)
        _get_logger().info("config_file_loaded",
                           path=str(config_path),
                           sections=list(file_config.keys()))

    def _load_secrets(self):
        """Load sensitive values from environment only."""
        secret_mappings = {
            'crm_service_token': 'CRM_SERVICE_TOKEN',
            'anthropic_api_key': 'ANTHROPIC_API_KEY',
        }

        for key, env_var in secret_mappings.items():
            value = os.getenv(env_var)
            if value:
                self._secrets[key] = value

        _get_logger().info("secrets_loaded",
                           secret_count=len(self._secrets),
                           secret_keys=list(self._secrets.keys()))

    def _apply_env_overrides(self):
        """Apply environment variable overrides for non-sensitive config."""
        env_mappings = {
            # Database
            'THOUGHTS_DB_PATH': 'database.thoughts_path',
            'DB_TIMEOUT': 'database.timeout',

            # Logging
            'LOG_LEVEL': 'logging.level',
            'LOG_DIR': 'logging.external_logs_dir',

            # Tools
            'DEFAULT_CURRENCY': 'tools.default_currency',
            'CLOSE_MATCH_LIMIT': 'tools.close_match_limit',

            # Debug
            'DEBUG_MODE': 'debug_mode',
        }

        for env_var, config_path in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                converted_value = self._convert_env_value(value)
                self._set_nested_value(self._config, config_path, converted_value)
                _get_logger().debug("env_override_applied",
                                    env_var=env_var,
                                    config_path=config_path,
                                    value=converted_value)

    def _convert_env_value(self, value: str) -> Union[str, int, float, bool]:
        """Convert environment variable string to appropriate type."""
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            if '.' not in value:
                return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries (neither input is modified)."""
        result = {
            key: self._deep_merge(value, {}) if isinstance(value, dict) else value
            for key, value in base.items()
        }

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _set_nested_value(self, config: Dict, path: str, value: Any):
        """Set a nested configuration value using dot notation."""
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            path: Dot-separated path like 'tools.default_currency'
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        keys = path.split('.')
        current = self._config

        try:
            for key in keys:
                current = current[key]
            return current
        except (KeyError, TypeError):
            return default

    def get_secret(self, key: str, required: bool = True) -> Optional[str]:
        """Get secret value from environment.

        Raises:
            ConfigError: If required secret is missing
        """
        value = self._secrets.get(key)

        if value is None and required:
            raise ConfigError(f"Required secret '{key}' not found in environment variables")

        return value

    def has_secret(self, key: str) -> bool:
        """Check if secret exists without exposing value."""
        return key in self._secrets

    # Property shortcuts for common values
    @property
    def thoughts_db_path(self) -> str:
        return self.get('database.thoughts_path', 'agent_thoughts.db')

    @property
    def db_timeout(self) -> float:
        return self.get('database.timeout', 30)

    @property
    def log_level(self) -> str:
        return self.get('logging.level', 'INFO')

    @property
    def log_dir(self) -> str:
        return self.get('logging.external_logs_dir', 'logs')

    @property
    def default_currency(self) -> str:
        return self.get('tools.default_currency', 'EUR')

    @property
    def close_match_limit(self) -> int:
        return self.get('tools.close_match_limit', 3)

    @property
    def min_organization_name_length(self) -> int:
        return self.get('tools.min_organization_name_length', 2)

    @property
    def search_limit(self) -> int:
        return self.get('tools.search_limit', 20)

    @property
    def parser_min_amount(self) -> float:
        return self.get('parser.min_amount', 100)

    @property
    def debug_mode(self) -> bool:
        return self.get('debug_mode', False)


# Singleton instance
config = UnifiedConfig()

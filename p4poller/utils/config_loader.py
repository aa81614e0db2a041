"""Configuration loader for the Perforce poller."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import ValidationError

from p4poller.errors import ConfigurationError, MissingConfigurationError
from p4poller.models.config import AppConfig, PerforceConfig

log = structlog.stdlib.get_logger()


class ConfigLoader:
    """Loads and validates poller configuration from YAML files and environment variables."""

    def __init__(self) -> None:
        """Initialize the ConfigLoader."""
        self.env_var_pattern = re.compile(r"\$\{([^}]+)\}")

    def load_config(self, config_path: Optional[str] = None) -> AppConfig:
        """Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to the configuration YAML file. If None, uses
                config/<P4POLLER_ENV>.yaml, falling back to config/default.yaml

        Returns:
            AppConfig: Validated application configuration

        Raises:
            MissingConfigurationError: If a required Perforce setting is absent
            ConfigurationError: If configuration file is missing or invalid
        """
        if config_path is None:
            config_path = self._get_default_config_path()

        log.info("loading_configuration", config_path=config_path)

        config_dict = self._load_yaml_file(config_path)
        config_dict = self._substitute_env_vars(config_dict)

        try:
            app_config = AppConfig(**config_dict)
        except ValidationError as e:
            missing = self._missing_perforce_fields(e)
            log.error("configuration_validation_failed", error=str(e), missing=missing)
            if missing:
                raise MissingConfigurationError(missing) from e
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        log.info("configuration_loaded_successfully", path=app_config.perforce.path)
        return app_config

    @staticmethod
    def _missing_perforce_fields(error: ValidationError) -> list[str]:
        """Name the required Perforce fields a validation error reports as absent.

        Null and empty values count as absent for required fields only. A config
        without a perforce section is missing every required field.
        """
        required = [
            name for name, field in PerforceConfig.model_fields.items() if field.is_required()
        ]
        absent = set()
        for detail in error.errors():
            loc = detail["loc"]
            if not loc or loc[0] != "perforce":
                continue
            if len(loc) == 1 and (detail["type"] == "missing" or detail.get("input") is None):
                return required
            if (
                len(loc) == 2
                and loc[1] in required
                and (detail["type"] == "missing" or detail.get("input") in (None, ""))
            ):
                absent.add(loc[1])
        return [name for name in required if name in absent]

    def _get_default_config_path(self) -> str:
        """Get the default configuration file path based on environment.

        Returns:
            str: Path to the configuration file
        """
        env = os.getenv("P4POLLER_ENV", "default")
        config_dir = Path(__file__).parent.parent.parent / "config"
        config_file = config_dir / f"{env}.yaml"

        if not config_file.exists():
            config_file = config_dir / "default.yaml"

        if not config_file.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_file}. "
                f"Please create config/default.yaml or set P4POLLER_ENV to a valid environment."
            )

        return str(config_file)

    def _load_yaml_file(self, config_path: str) -> Dict[str, Any]:
        """Load YAML configuration file.

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(config_path, "r") as f:
                config_dict = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {config_path}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration file {config_path}: {e}") from e

        if config_dict is None:
            raise ConfigurationError(f"Configuration file is empty: {config_path}")
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration file must hold a mapping: {config_path}")

        log.debug("yaml_file_loaded", config_path=config_path)
        return config_dict

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute ${VAR_NAME} references with environment values.

        Raises:
            ConfigurationError: If a referenced environment variable is not set
        """
        if isinstance(config, dict):
            return {key: self._substitute_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_var_in_string(config)
        else:
            return config

    def _substitute_env_var_in_string(self, value: str) -> str:
        matches = self.env_var_pattern.findall(value)

        for var_name in matches:
            env_value = os.getenv(var_name)
            if env_value is None:
                raise ConfigurationError(
                    f"Required environment variable not set: {var_name}. "
                    f"Please set {var_name} in your environment."
                )
            value = value.replace(f"${{{var_name}}}", env_value)

        return value

    def validate_config(self, config: AppConfig) -> list[str]:
        """Validate configuration and return any warnings.

        Args:
            config: Application configuration to validate

        Returns:
            List of warning messages (empty if no warnings)
        """
        warnings = []

        if not config.perforce.path.startswith("//"):
            warnings.append(
                f"perforce.path '{config.perforce.path}' is not a depot path (expected //depot/...)"
            )

        if config.perforce.command_timeout is None:
            warnings.append("perforce.command_timeout is disabled; a hung p4 will block the poller")

        if warnings:
            log.warning("configuration_validation_warnings", warnings=warnings)

        return warnings

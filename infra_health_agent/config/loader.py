"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Optional
from .models import AgentConfig
from .settings import Settings


class ConfigLoader:
    """Load and validate agent configuration."""

    @staticmethod
    def load(config_path: Optional[str] = None) -> AgentConfig:
        """
        Build configuration from an optional YAML file plus environment overrides.

        INFRA_HEALTH_* environment variables take precedence over file values.

        Args:
            config_path: Optional path to YAML configuration file

        Returns:
            AgentConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config_path is given but doesn't exist
            pydantic.ValidationError: If configuration validation fails
        """
        raw_config = ConfigLoader._read_yaml(config_path) if config_path else {}
        raw_config.update(Settings.overrides())
        return AgentConfig(**raw_config)

    @staticmethod
    def _read_yaml(config_path: str) -> dict:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration root must be a mapping: {config_path}")

        # Substitute environment variables
        return ConfigLoader._substitute_env_vars(raw_config)

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            # Replace ${VAR_NAME} with os.getenv('VAR_NAME')
            pattern = r'\$\{(\w+)\}'
            return re.sub(pattern, lambda m: os.getenv(m.group(1), ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj

"""Environment settings overrides."""

import os
from typing import Any, Dict, Optional


# Environment variable -> AgentConfig field
ENV_OVERRIDES = {
    "INFRA_HEALTH_AGENT_ID": "agent_id",
    "INFRA_HEALTH_COLLECT_INTERVAL_MS": "collect_interval_ms",
    "INFRA_HEALTH_COLLECT_TIMEOUT_MS": "collect_timeout_ms",
    "INFRA_HEALTH_CHANNEL_BUFFER": "channel_buffer_size",
    "INFRA_HEALTH_JSON_LOGS": "json_logs",
    "INFRA_HEALTH_LOG_LEVEL": "log_level",
    "INFRA_HEALTH_MAX_RETRIES": "max_retries",
    "INFRA_HEALTH_RETRY_BACKOFF_MS": "retry_backoff_ms",
    "INFRA_HEALTH_PROC_ROOT": "proc_root",
}


class Settings:
    """Application settings from environment variables."""

    @staticmethod
    def get(key: str, default: Optional[str] = None) -> str:
        """
        Get environment variable value.

        Args:
            key: Environment variable name
            default: Default value if not set

        Returns:
            str: Environment variable value, "" when unset
        """
        return os.getenv(key, default) or ""

    @staticmethod
    def overrides() -> Dict[str, Any]:
        """
        Collect INFRA_HEALTH_* overrides that are set in the environment.

        Values stay strings; pydantic coerces them when the config is built.

        Returns:
            Dict[str, Any]: Field name -> raw value
        """
        overrides = {}
        for var, field in ENV_OVERRIDES.items():
            value = Settings.get(var)
            if value:
                overrides[field] = value
        return overrides

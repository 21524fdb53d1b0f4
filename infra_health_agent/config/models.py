"""Pydantic configuration models for the health agent."""

import logging
import socket
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AgentConfig(BaseModel):
    """Root configuration for one agent instance."""
    agent_id: Optional[str] = None  # Defaults to the hostname
    collect_interval_ms: int = Field(default=5000, ge=100)
    collect_timeout_ms: int = Field(default=2000, ge=10)
    channel_buffer_size: int = Field(default=256, ge=1)  # Bounded for backpressure
    json_logs: bool = False
    log_level: str = "INFO"
    max_retries: int = Field(default=3, ge=0)
    retry_backoff_ms: int = Field(default=500, ge=1)
    proc_root: str = "/proc"

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f'Unknown log level: {v}')
        return level

    def resolved_agent_id(self) -> str:
        """
        Get the agent ID, falling back to the hostname.

        Returns:
            str: Configured ID, hostname, or "unknown-agent"
        """
        if self.agent_id:
            return self.agent_id
        try:
            return socket.gethostname() or "unknown-agent"
        except OSError:
            logging.getLogger(__name__).warning("Could not resolve hostname for agent_id")
            return "unknown-agent"

    @property
    def collect_interval_s(self) -> float:
        return self.collect_interval_ms / 1000

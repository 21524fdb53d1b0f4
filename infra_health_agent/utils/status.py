"""Health status enumeration."""

from enum import Enum


class CheckStatus(Enum):
    """Host health classification emitted by every collector."""

    HEALTHY = "HEALTHY"
    DEGRADED = "DEGRADED"
    UNHEALTHY = "UNHEALTHY"

    @property
    def label(self) -> str:
        """
        Render status as its wire label.

        Returns:
            str: One of "HEALTHY", "DEGRADED", "UNHEALTHY"
        """
        return self.value

    def to_emoji(self) -> str:
        """
        Convert status to emoji representation.

        Returns:
            str: Emoji representing the health status
        """
        return {
            CheckStatus.HEALTHY: "🟢",
            CheckStatus.DEGRADED: "🟡",
            CheckStatus.UNHEALTHY: "🔴",
        }[self]

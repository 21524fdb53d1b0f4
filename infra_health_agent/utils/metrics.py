"""Metric data structures for collectors."""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Union

from .status import CheckStatus


@dataclass(frozen=True)
class CpuSnapshot:
    """CPU utilisation over the last sampling interval plus load averages."""

    kind: ClassVar[str] = "Cpu"

    user_pct: float
    system_pct: float
    iowait_pct: float
    idle_pct: float
    num_cores: int
    load_avg_1m: float
    load_avg_5m: float
    load_avg_15m: float


@dataclass(frozen=True)
class MemorySnapshot:
    """Physical memory and swap usage, all sizes in bytes."""

    kind: ClassVar[str] = "Memory"

    total_bytes: int
    available_bytes: int
    used_bytes: int
    swap_total_bytes: int
    swap_used_bytes: int
    memory_pressure_pct: float


# New metric kinds are added as another frozen dataclass with its own `kind`.
MetricPayload = Union[CpuSnapshot, MemorySnapshot]


def payload_to_dict(payload: MetricPayload) -> Dict[str, Any]:
    """
    Serialize a payload as a tagged object.

    Args:
        payload: Snapshot emitted by a collector

    Returns:
        Dict[str, Any]: {"type": <kind>, **snapshot fields}
    """
    return {"type": payload.kind, **dataclasses.asdict(payload)}


@dataclass(frozen=True)
class CollectionResult:
    """Standard result format from all collectors."""

    check_name: str
    status: CheckStatus
    message: str  # Human-readable summary
    payload: MetricPayload
    metadata: Dict[str, str] = field(default_factory=dict)
    latency_us: int = 0  # Filled by the caller after timing collect()

    def with_latency(self, latency_us: int) -> "CollectionResult":
        """Return a copy of this result carrying the measured latency."""
        return dataclasses.replace(self, latency_us=latency_us)

    def to_dict(self) -> Dict[str, Any]:
        """
        Render the result in its serialized wire shape.

        Returns:
            Dict[str, Any]: JSON-compatible mapping
        """
        return {
            "check_name": self.check_name,
            "status": self.status.label,
            "message": self.message,
            "metadata": dict(self.metadata),
            "latency_us": self.latency_us,
            "payload": payload_to_dict(self.payload),
        }

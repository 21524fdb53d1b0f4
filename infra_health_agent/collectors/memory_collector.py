"""Memory pressure collector reading /proc/meminfo."""

from typing import Dict

from ..errors import ParseError
from ..utils.metrics import CollectionResult, MemorySnapshot
from ..utils.status import CheckStatus
from .base import BaseCollector, DEFAULT_PROC_ROOT, parse_unsigned


PRESSURE_UNHEALTHY_PCT = 95.0
PRESSURE_DEGRADED_PCT = 80.0
SWAP_UNHEALTHY_PCT = 80

MB = 1024 * 1024


class MemoryCollector(BaseCollector):
    """Stateless collector for physical memory and swap usage."""

    check_name = "memory"

    def __init__(self, proc_root: str = DEFAULT_PROC_ROOT):
        super().__init__(proc_root)
        self.meminfo_path = str(self.proc_root / "meminfo")

    async def collect(self) -> CollectionResult:
        """
        Read /proc/meminfo and classify memory pressure.

        Returns:
            CollectionResult: Memory snapshot and health status

        Raises:
            ProcReadError: If meminfo cannot be read
            ParseError: If MemTotal or MemAvailable is missing
        """
        content = await self._read_proc_file("meminfo")
        table = self.parse_meminfo(content)

        total = self.get_bytes(table, "MemTotal", self.meminfo_path)
        available = self.get_bytes(table, "MemAvailable", self.meminfo_path)
        swap_total = table.get("SwapTotal", 0) * 1024
        swap_free = table.get("SwapFree", 0) * 1024

        snapshot = self.build_snapshot(total, available, swap_total, swap_free)
        status = self.classify(snapshot)

        message = (
            f"used={snapshot.memory_pressure_pct:.1f}% "
            f"({snapshot.used_bytes // MB}/{snapshot.total_bytes // MB} MB) "
            f"swap={snapshot.swap_used_bytes // MB}/{snapshot.swap_total_bytes // MB} MB"
        )

        return CollectionResult(
            check_name=self.name,
            status=status,
            message=message,
            payload=snapshot
        )

    @staticmethod
    def parse_meminfo(content: str) -> Dict[str, int]:
        """
        Parse /proc/meminfo into a field -> kB mapping.

        Lines without at least two tokens, or whose value is not an
        integer, are skipped.

        Example meminfo line:
            MemTotal:       16384000 kB
        """
        table = {}
        for line in content.splitlines():
            parts = line.split()
            if len(parts) < 2:
                continue
            value = parse_unsigned(parts[1])
            if value is None:
                continue
            table[parts[0].rstrip(':')] = value
        return table

    @staticmethod
    def get_bytes(table: Dict[str, int], field: str, path: str = "/proc/meminfo") -> int:
        """
        Extract a required meminfo field converted from kB to bytes.

        Raises:
            ParseError: If the field is absent
        """
        if field not in table:
            raise ParseError(path, field, "field not found")
        return table[field] * 1024

    @staticmethod
    def build_snapshot(
        total: int,
        available: int,
        swap_total: int,
        swap_free: int
    ) -> MemorySnapshot:
        """Derive used sizes and pressure; subtractions saturate at zero."""
        used = max(total - available, 0)
        swap_used = max(swap_total - swap_free, 0)
        pressure_pct = used / total * 100.0 if total > 0 else 0.0

        return MemorySnapshot(
            total_bytes=total,
            available_bytes=available,
            used_bytes=used,
            swap_total_bytes=swap_total,
            swap_used_bytes=swap_used,
            memory_pressure_pct=pressure_pct
        )

    @staticmethod
    def classify(snapshot: MemorySnapshot) -> CheckStatus:
        swap_exhausted = (
            snapshot.swap_total_bytes > 0
            and snapshot.swap_used_bytes > snapshot.swap_total_bytes * SWAP_UNHEALTHY_PCT // 100
        )
        if snapshot.memory_pressure_pct > PRESSURE_UNHEALTHY_PCT or swap_exhausted:
            return CheckStatus.UNHEALTHY
        if snapshot.memory_pressure_pct > PRESSURE_DEGRADED_PCT:
            return CheckStatus.DEGRADED
        return CheckStatus.HEALTHY

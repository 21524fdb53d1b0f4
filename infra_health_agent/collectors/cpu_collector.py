"""CPU utilisation collector reading /proc/stat and /proc/loadavg."""

import string
from dataclasses import dataclass, fields
from typing import Optional, Tuple

from ..errors import ParseError
from ..utils.metrics import CollectionResult, CpuSnapshot
from ..utils.status import CheckStatus
from .base import BaseCollector, DEFAULT_PROC_ROOT, parse_unsigned


IOWAIT_UNHEALTHY_PCT = 30.0
IOWAIT_DEGRADED_PCT = 10.0
BUSY_UNHEALTHY_PCT = 95.0
BUSY_DEGRADED_PCT = 80.0


@dataclass(frozen=True)
class CpuSample:
    """Cumulative tick counters from the aggregate line of /proc/stat."""

    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int

    def total(self) -> int:
        return (
            self.user + self.nice + self.system + self.idle
            + self.iowait + self.irq + self.softirq + self.steal
        )


COUNTER_FIELDS = tuple(f.name for f in fields(CpuSample))


def _delta(current: int, previous: int) -> int:
    # Counters can reset (e.g. after a hotplug); never go negative.
    return max(current - previous, 0)


class CpuCollector(BaseCollector):
    """
    Collector for CPU utilisation.

    Utilisation is a rate, so the collector keeps the previous tick sample
    and reports percentages of the ticks elapsed since then. The first call
    after construction has nothing to compare against and reports 0.0 for
    every percentage; callers should disregard that first reading.
    """

    check_name = "cpu"

    def __init__(self, proc_root: str = DEFAULT_PROC_ROOT):
        super().__init__(proc_root)
        self.stat_path = str(self.proc_root / "stat")
        self.loadavg_path = str(self.proc_root / "loadavg")
        self._prev_sample: Optional[CpuSample] = None

    async def collect(self) -> CollectionResult:
        """
        Sample CPU counters and load averages.

        Returns:
            CollectionResult: CPU snapshot and health status

        Raises:
            ProcReadError: If /proc/stat or /proc/loadavg cannot be read
            ParseError: If either file has an unexpected layout
        """
        stat_content = await self._read_proc_file("stat")
        lines = stat_content.splitlines()
        if not lines:
            raise ParseError(self.stat_path, "cpu_line", "empty file")

        current = self.parse_cpu_line(lines[0], self.stat_path)
        num_cores = self.count_cores(stat_content)

        loadavg_content = await self._read_proc_file("loadavg")
        load_1m, load_5m, load_15m = self.parse_loadavg(loadavg_content, self.loadavg_path)

        if self._prev_sample is None:
            user_pct = system_pct = iowait_pct = idle_pct = 0.0
        else:
            user_pct, system_pct, iowait_pct, idle_pct = self.compute_percentages(
                self._prev_sample, current
            )

        self._prev_sample = current

        snapshot = CpuSnapshot(
            user_pct=user_pct,
            system_pct=system_pct,
            iowait_pct=iowait_pct,
            idle_pct=idle_pct,
            num_cores=num_cores,
            load_avg_1m=load_1m,
            load_avg_5m=load_5m,
            load_avg_15m=load_15m
        )

        message = (
            f"user={user_pct:.1f}% sys={system_pct:.1f}% "
            f"iowait={iowait_pct:.1f}% idle={idle_pct:.1f}% load={load_1m:.2f}"
        )

        return CollectionResult(
            check_name=self.name,
            status=self.classify(iowait_pct, idle_pct),
            message=message,
            payload=snapshot
        )

    @staticmethod
    def parse_cpu_line(line: str, path: str = "/proc/stat") -> CpuSample:
        """
        Parse the aggregate CPU line into tick counters.

        Args:
            line: Line such as "cpu  10132153 290696 3084719 46828483 16683 0 25195 0 0 0"
            path: Source path reported in parse errors

        Returns:
            CpuSample: The first eight counters after the label

        Raises:
            ParseError: If there are fewer than 9 tokens (field "cpu") or a
                counter is not an unsigned integer (field named after the counter)
        """
        parts = line.split()
        if len(parts) < 9:
            raise ParseError(path, "cpu", line)

        counters = {}
        for name, raw in zip(COUNTER_FIELDS, parts[1:9]):
            value = parse_unsigned(raw)
            if value is None:
                raise ParseError(path, name, raw)
            counters[name] = value

        return CpuSample(**counters)

    @staticmethod
    def count_cores(stat_content: str) -> int:
        """Count per-core lines ("cpu0", "cpu1", ...) in /proc/stat."""
        return sum(
            1 for line in stat_content.splitlines()
            if line.startswith("cpu") and len(line) > 3 and line[3] in string.digits
        )

    @staticmethod
    def parse_loadavg(content: str, path: str = "/proc/loadavg") -> Tuple[float, float, float]:
        """
        Parse the 1, 5 and 15 minute load averages.

        Example loadavg content:
            0.50 0.75 1.00 2/1234 5678
        """
        parts = content.split()
        if len(parts) < 3:
            raise ParseError(path, "loadavg", content)

        averages = []
        for name, raw in zip(("1m", "5m", "15m"), parts[:3]):
            try:
                averages.append(float(raw))
            except ValueError:
                raise ParseError(path, name, raw) from None

        return averages[0], averages[1], averages[2]

    @staticmethod
    def compute_percentages(
        prev: CpuSample,
        curr: CpuSample
    ) -> Tuple[float, float, float, float]:
        """
        Compute user/system/iowait/idle percentages between two samples.

        Percentages are of the total tick delta. If a counter went backwards,
        the divisor is the sum of the per-field deltas when that is larger,
        which keeps each value in [0, 100].

        Returns:
            Tuple[float, float, float, float]: (user, system, iowait, idle).
            When no ticks elapsed the reading is (0, 0, 0, 100).
        """
        total_delta = _delta(curr.total(), prev.total())
        if total_delta == 0:
            return 0.0, 0.0, 0.0, 100.0

        deltas = {
            name: _delta(getattr(curr, name), getattr(prev, name))
            for name in COUNTER_FIELDS
        }
        # Equal to total_delta unless some counter went backwards
        elapsed = max(total_delta, sum(deltas.values()))

        user = deltas["user"] + deltas["nice"]
        system = deltas["system"] + deltas["irq"] + deltas["softirq"]

        return (
            user / elapsed * 100.0,
            system / elapsed * 100.0,
            deltas["iowait"] / elapsed * 100.0,
            deltas["idle"] / elapsed * 100.0,
        )

    @staticmethod
    def classify(iowait_pct: float, idle_pct: float) -> CheckStatus:
        busy_pct = 100.0 - idle_pct
        if iowait_pct > IOWAIT_UNHEALTHY_PCT or busy_pct > BUSY_UNHEALTHY_PCT:
            return CheckStatus.UNHEALTHY
        if iowait_pct > IOWAIT_DEGRADED_PCT or busy_pct > BUSY_DEGRADED_PCT:
            return CheckStatus.DEGRADED
        return CheckStatus.HEALTHY

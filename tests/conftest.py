"""Shared pytest configuration and fixtures."""

import pytest
from pathlib import Path

from infra_health_agent.utils.logger import setup_logger


SAMPLE_STAT = """\
cpu  10132153 290696 3084719 46828483 16683 0 25195 0 0 0
cpu0 1393280 32966 572056 13343292 6130 0 17875 0 0 0
cpu1 1335498 35507 523368 13200746 4990 0 3670 0 0 0
intr 114930548 113199788 3 0 5 263 0 0 0 0 0 0
ctxt 1990473
btime 1062191376
processes 2915
procs_running 1
procs_blocked 0
"""

SAMPLE_LOADAVG = "0.50 0.75 1.00 2/1234 5678\n"

SAMPLE_MEMINFO = """\
MemTotal:       16384000 kB
MemFree:         2048000 kB
MemAvailable:    4096000 kB
Buffers:          512000 kB
Cached:          2048000 kB
SwapTotal:       8192000 kB
SwapFree:        4096000 kB
HugePages_Total:       0
"""


class FakeProc:
    """A writable stand-in for the proc filesystem rooted in tmp_path."""

    def __init__(self, root: Path):
        self.root = root

    def write(self, name: str, content: str) -> None:
        (self.root / name).write_text(content)

    def write_stat(self, user=0, nice=0, system=0, idle=0, iowait=0, irq=0, softirq=0, steal=0):
        """Write an aggregate cpu line followed by two per-core lines."""
        self.write("stat", (
            f"cpu  {user} {nice} {system} {idle} {iowait} {irq} {softirq} {steal} 0 0\n"
            "cpu0 0 0 0 0 0 0 0 0 0 0\n"
            "cpu1 0 0 0 0 0 0 0 0 0 0\n"
        ))

    def write_meminfo(self, total_kb, available_kb, swap_total_kb=None, swap_free_kb=None):
        """Write a minimal meminfo table; swap lines only when given."""
        lines = [f"MemTotal:       {total_kb} kB", f"MemAvailable:   {available_kb} kB"]
        if swap_total_kb is not None:
            lines.append(f"SwapTotal:      {swap_total_kb} kB")
        if swap_free_kb is not None:
            lines.append(f"SwapFree:       {swap_free_kb} kB")
        self.write("meminfo", "\n".join(lines) + "\n")

    def remove(self, name: str) -> None:
        (self.root / name).unlink()

    def __str__(self) -> str:
        return str(self.root)


@pytest.fixture
def fake_proc(tmp_path):
    """Proc root populated with realistic stat, loadavg and meminfo files."""
    root = tmp_path / "proc"
    root.mkdir()
    proc = FakeProc(root)
    proc.write("stat", SAMPLE_STAT)
    proc.write("loadavg", SAMPLE_LOADAVG)
    proc.write("meminfo", SAMPLE_MEMINFO)
    return proc


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test")

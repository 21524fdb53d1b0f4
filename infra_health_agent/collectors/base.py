"""Base collector abstract class for all host metric collectors."""

import asyncio
import functools
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..errors import CollectionTimeout, ProcReadError
from ..utils.metrics import CollectionResult


DEFAULT_PROC_ROOT = "/proc"


def parse_unsigned(raw: str) -> Optional[int]:
    """
    Parse a proc counter token as an unsigned decimal integer.

    Accepts ASCII digits with an optional leading "+"; rejects signs,
    underscores and non-ASCII digits that int() would otherwise allow.

    Returns:
        Optional[int]: The value, or None if the token is not a valid counter
    """
    digits = raw[1:] if raw.startswith("+") else raw
    if not digits or not (digits.isascii() and digits.isdigit()):
        return None
    return int(digits)


class BaseCollector(ABC):
    """
    Abstract base class for all collectors.

    Subclasses define a static ``check_name`` and implement ``collect``.
    A single instance must not be collected concurrently with itself;
    callers serialize calls per instance.
    """

    check_name: str = ""

    def __init__(self, proc_root: str = DEFAULT_PROC_ROOT):
        """
        Initialize base collector.

        Args:
            proc_root: Mount point of the proc filesystem to read from
        """
        self.proc_root = Path(proc_root)

    @property
    def name(self) -> str:
        """Stable identifier used as the report key."""
        return self.check_name

    @abstractmethod
    async def collect(self) -> CollectionResult:
        """
        Run one read-parse-compute cycle against live host state.

        Returns:
            CollectionResult: Fully populated result with latency_us = 0

        Raises:
            CollectorError: Read or parse failure; no partial result is produced
        """
        pass

    async def _read_proc_file(self, name: str) -> str:
        """
        Read a proc pseudo-file without blocking the event loop.

        Args:
            name: File name relative to proc_root (e.g., "meminfo")

        Returns:
            str: File contents

        Raises:
            ProcReadError: If the file cannot be opened, read or decoded
        """
        path = self.proc_root / name
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, functools.partial(path.read_text, encoding="utf-8")
            )
        except (OSError, UnicodeDecodeError) as e:
            raise ProcReadError(str(path), e) from e


async def timed_collect(
    collector: BaseCollector,
    timeout_ms: Optional[int] = None
) -> CollectionResult:
    """
    Invoke a collector and stamp the elapsed time on its result.

    Args:
        collector: Collector to run
        timeout_ms: Optional deadline for the call

    Returns:
        CollectionResult: Result with latency_us filled

    Raises:
        CollectionTimeout: If the deadline expired before collect() finished
        CollectorError: Any failure raised by the collector itself
    """
    start = time.perf_counter()
    if timeout_ms is None:
        result = await collector.collect()
    else:
        try:
            result = await asyncio.wait_for(collector.collect(), timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise CollectionTimeout(timeout_ms, collector.name) from e

    latency_us = int((time.perf_counter() - start) * 1_000_000)
    return result.with_latency(latency_us)

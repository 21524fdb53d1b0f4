"""Typed collection failures shared by all collectors."""

from typing import Optional


class CollectorError(Exception):
    """Base class for every failure a collector can raise from collect()."""


class ProcReadError(CollectorError):
    """A kernel pseudo-file could not be opened or read."""

    def __init__(self, path: str, source: Exception):
        self.path = path
        self.source = source
        super().__init__(f"failed to read {path}: {source}")


class ParseError(CollectorError):
    """A pseudo-file was read but a required field was absent or malformed."""

    def __init__(self, path: str, field: str, raw: str):
        self.path = path
        self.field = field
        self.raw = raw
        super().__init__(f"failed to parse {field} from {path}: {raw}")


class ProcessVanished(CollectorError):
    """A tracked process exited while it was being inspected."""

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"process {pid} disappeared during collection")


class CollectionTimeout(CollectorError):
    """A collect() call did not finish before the caller's deadline."""

    def __init__(self, timeout_ms: int, collector_name: Optional[str] = None):
        self.timeout_ms = timeout_ms
        self.collector_name = collector_name
        super().__init__(f"collection timed out after {timeout_ms}ms")

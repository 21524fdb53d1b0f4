"""Tests for BaseCollector and the timed collection wrapper."""

import asyncio

import pytest

from infra_health_agent.collectors.base import BaseCollector, timed_collect
from infra_health_agent.collectors.cpu_collector import CpuCollector
from infra_health_agent.collectors.memory_collector import MemoryCollector
from infra_health_agent.errors import CollectionTimeout, CollectorError, ParseError, ProcReadError
from infra_health_agent.utils.metrics import CollectionResult, MemorySnapshot
from infra_health_agent.utils.status import CheckStatus


def make_result(name="mock"):
    return CollectionResult(
        check_name=name,
        status=CheckStatus.HEALTHY,
        message="ok",
        payload=MemorySnapshot(100, 50, 50, 0, 0, 50.0)
    )


class MockCollector(BaseCollector):
    """Mock collector for testing BaseCollector functionality."""

    check_name = "mock"

    def __init__(self, delay=0.0, error=None):
        super().__init__()
        self.delay = delay
        self.error = error
        self.calls = 0

    async def collect(self):
        """Mock collect method."""
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return make_result(self.name)


class TestBaseCollector:
    """Test suite for BaseCollector."""

    def test_cannot_instantiate_abstract_base(self):
        with pytest.raises(TypeError):
            BaseCollector()

    def test_name_comes_from_check_name(self):
        assert MockCollector().name == "mock"

    def test_default_proc_root(self):
        assert str(MockCollector().proc_root) == "/proc"

    @pytest.mark.asyncio
    async def test_heterogeneous_collectors_invoked_uniformly(self, fake_proc):
        collectors = [CpuCollector(str(fake_proc)), MemoryCollector(str(fake_proc)), MockCollector()]

        results = [await c.collect() for c in collectors]

        assert [r.check_name for r in results] == ["cpu", "memory", "mock"]
        assert all(isinstance(r, CollectionResult) for r in results)

    @pytest.mark.asyncio
    async def test_read_proc_file(self, fake_proc):
        collector = MockCollector()
        collector.proc_root = fake_proc.root

        content = await collector._read_proc_file("loadavg")

        assert content.startswith("0.50 0.75 1.00")

    @pytest.mark.asyncio
    async def test_undecodable_proc_file_raises_read_error(self, fake_proc):
        (fake_proc.root / "meminfo").write_bytes(b"MemTotal: 1 kB\nX: \xff\xfe kB\n")
        collector = MemoryCollector(str(fake_proc))

        with pytest.raises(ProcReadError) as exc_info:
            await collector.collect()

        assert exc_info.value.path == collector.meminfo_path
        assert isinstance(exc_info.value.source, UnicodeDecodeError)
        assert isinstance(exc_info.value, CollectorError)


class TestTimedCollect:
    """Test suite for timed_collect."""

    @pytest.mark.asyncio
    async def test_fills_latency(self):
        result = await timed_collect(MockCollector(delay=0.01))

        assert result.check_name == "mock"
        assert result.latency_us >= 5_000

    def test_with_latency_returns_copy(self):
        unstamped = make_result()
        stamped = unstamped.with_latency(42)

        assert unstamped.latency_us == 0
        assert stamped.latency_us == 42
        assert stamped.payload is unstamped.payload

    @pytest.mark.asyncio
    async def test_timeout_raises_collection_timeout(self):
        with pytest.raises(CollectionTimeout) as exc_info:
            await timed_collect(MockCollector(delay=1.0), timeout_ms=20)

        assert exc_info.value.timeout_ms == 20
        assert exc_info.value.collector_name == "mock"
        assert str(exc_info.value) == "collection timed out after 20ms"
        assert isinstance(exc_info.value, CollectorError)

    @pytest.mark.asyncio
    async def test_within_deadline(self):
        result = await timed_collect(MockCollector(), timeout_ms=1000)
        assert result.status == CheckStatus.HEALTHY

    @pytest.mark.asyncio
    async def test_collector_errors_propagate(self):
        error = ParseError("/proc/stat", "cpu", "cpu 1")

        with pytest.raises(ParseError) as exc_info:
            await timed_collect(MockCollector(error=error), timeout_ms=1000)

        assert exc_info.value is error

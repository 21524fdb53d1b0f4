"""Tests for the HealthAgent driver."""

import asyncio
import json

import pytest

from infra_health_agent.collectors.base import BaseCollector
from infra_health_agent.collectors.memory_collector import MemoryCollector
from infra_health_agent.config.models import AgentConfig
from infra_health_agent.errors import ProcessVanished
from infra_health_agent.main import HealthAgent
from infra_health_agent.utils.metrics import CollectionResult, MemorySnapshot
from infra_health_agent.utils.status import CheckStatus

# Fixtures imported from conftest.py: fake_proc, logger


class FailingCollector(BaseCollector):
    check_name = "process"

    async def collect(self):
        raise ProcessVanished(4242)


class SlowCollector(BaseCollector):
    check_name = "slow"

    async def collect(self):
        await asyncio.sleep(5)
        return CollectionResult(
            "slow", CheckStatus.HEALTHY, "ok", MemorySnapshot(1, 1, 0, 0, 0, 0.0)
        )


@pytest.fixture
def config(fake_proc):
    return AgentConfig(
        agent_id="test-agent",
        proc_root=str(fake_proc),
        collect_interval_ms=100,
        collect_timeout_ms=500
    )


@pytest.fixture
def delivered():
    return []


@pytest.mark.asyncio
async def test_default_collectors(config, logger):
    agent = HealthAgent(config, logger)

    assert [c.name for c in agent.collectors] == ["cpu", "memory"]
    assert agent.agent_id == "test-agent"


@pytest.mark.asyncio
async def test_reporter_uses_configured_backoff(config, logger):
    config = config.model_copy(update={"max_retries": 5, "retry_backoff_ms": 250})
    agent = HealthAgent(config, logger)

    assert agent.reporter.max_retries == 5
    assert agent.reporter.retry_backoff_s == 0.25


@pytest.mark.asyncio
async def test_run_once_delivers_every_result(config, logger, delivered):
    agent = HealthAgent(config, logger, sink=delivered.append)

    ok = await agent.run_once()

    assert ok is True
    reports = [json.loads(doc) for doc in delivered]
    assert sorted(r["report"]["check_name"] for r in reports) == ["cpu", "memory"]
    assert all(r["agent_id"] == "test-agent" for r in reports)
    assert all(r["report"]["latency_us"] > 0 for r in reports)


@pytest.mark.asyncio
async def test_collector_failure_is_isolated(config, logger, delivered, fake_proc):
    agent = HealthAgent(
        config,
        logger,
        collectors=[FailingCollector(), MemoryCollector(str(fake_proc))],
        sink=delivered.append
    )

    ok = await agent.run_once()

    assert ok is False
    assert agent.failure_count == 1
    assert [json.loads(d)["report"]["check_name"] for d in delivered] == ["memory"]


@pytest.mark.asyncio
async def test_undecodable_meminfo_is_a_collection_failure(config, logger, delivered, fake_proc):
    (fake_proc.root / "meminfo").write_bytes(b"\xff\xfe")
    agent = HealthAgent(config, logger, sink=delivered.append)

    ok = await agent.run_once()

    assert ok is False
    assert agent.failure_count == 1
    assert [json.loads(d)["report"]["check_name"] for d in delivered] == ["cpu"]


@pytest.mark.asyncio
async def test_slow_collector_times_out(config, logger, delivered):
    agent = HealthAgent(config, logger, collectors=[SlowCollector()], sink=delivered.append)

    result = await agent.run_collector(agent.collectors[0])

    assert result is None
    assert agent.failure_count == 1
    assert agent.queue.empty()


@pytest.mark.asyncio
async def test_run_forever_until_stopped(config, logger, delivered):
    agent = HealthAgent(config, logger, sink=delivered.append)

    task = asyncio.create_task(agent.run_forever())
    for _ in range(100):
        await asyncio.sleep(0.05)
        if len(delivered) >= 4:
            break
    agent.stop()
    await asyncio.wait_for(task, timeout=5)

    names = [json.loads(d)["report"]["check_name"] for d in delivered]
    assert names.count("cpu") >= 2
    assert names.count("memory") >= 2
    assert not agent.scheduler.running

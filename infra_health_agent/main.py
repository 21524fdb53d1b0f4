"""Main application entry point for the host health agent."""

import argparse
import asyncio
import logging
import os
import signal
import sys
from datetime import datetime, timezone
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .collectors.base import BaseCollector, timed_collect
from .collectors.cpu_collector import CpuCollector
from .collectors.memory_collector import MemoryCollector
from .config.loader import ConfigLoader
from .config.models import AgentConfig
from .errors import CollectorError
from .services.reporter import Reporter, Sink
from .utils.logger import setup_logger
from .utils.metrics import CollectionResult


class HealthAgent:
    """
    Host health agent.

    Drives every collector on a fixed interval, stamps latency on each
    result and forwards it through a bounded queue to the reporter.
    """

    def __init__(
        self,
        config: AgentConfig,
        logger: logging.Logger = None,
        collectors: Optional[List[BaseCollector]] = None,
        sink: Optional[Sink] = None
    ):
        """
        Initialize the agent.

        Args:
            config: Agent configuration
            logger: Optional logger instance
            collectors: Collectors to drive; defaults to CPU and memory
            sink: Optional report sink passed to the Reporter
        """
        self.config = config
        self.logger = logger or setup_logger(
            "infra_health_agent", config.log_level, config.json_logs
        )
        self.agent_id = config.resolved_agent_id()

        if collectors is None:
            collectors = [
                CpuCollector(config.proc_root),
                MemoryCollector(config.proc_root),
            ]
        self.collectors = collectors

        self.queue: "asyncio.Queue[Optional[CollectionResult]]" = asyncio.Queue(
            maxsize=config.channel_buffer_size
        )
        self.reporter = Reporter(
            self.agent_id,
            sink=sink,
            max_retries=config.max_retries,
            retry_backoff_ms=config.retry_backoff_ms,
            logger=self.logger
        )
        self.scheduler = None
        self.failure_count = 0
        self._stop_event: Optional[asyncio.Event] = None

        self.logger.info(
            f"Agent {self.agent_id} initialized with collectors: "
            f"{', '.join(c.name for c in self.collectors)}"
        )

    async def run_collector(self, collector: BaseCollector) -> Optional[CollectionResult]:
        """
        Run one collection for a single collector and enqueue the result.

        Failures are logged and counted; the next tick tries again.

        Args:
            collector: Collector to invoke

        Returns:
            Optional[CollectionResult]: The result, or None if collection failed
        """
        try:
            result = await timed_collect(collector, self.config.collect_timeout_ms)
        except CollectorError as e:
            self.failure_count += 1
            self.logger.warning(
                f"Collection failed for {collector.name}: {e}",
                extra={"check_name": collector.name, "error_type": type(e).__name__}
            )
            return None

        self.logger.debug(
            f"{result.check_name}: {result.status.label} {result.message} "
            f"({result.latency_us}us)"
        )
        # Blocks when the reporter falls behind
        await self.queue.put(result)
        return result

    async def run_cycle(self) -> List[CollectionResult]:
        """
        Run every collector once, concurrently.

        Returns:
            List[CollectionResult]: Results of the collectors that succeeded
        """
        results = await asyncio.gather(*(self.run_collector(c) for c in self.collectors))
        return [r for r in results if r is not None]

    async def run_once(self) -> bool:
        """
        Execute a single collection cycle and deliver its reports.

        Returns:
            bool: True if every collector produced a result
        """
        reporter_task = asyncio.create_task(self.reporter.run(self.queue))
        try:
            results = await self.run_cycle()
        finally:
            await self.queue.put(None)
            await reporter_task

        for result in results:
            self.logger.info(
                f"{result.status.to_emoji()} {result.check_name}: {result.message}"
            )
        return len(results) == len(self.collectors)

    async def run_forever(self) -> None:
        """
        Schedule every collector on the configured interval until stopped.

        Each collector gets its own job with max_instances=1, so calls to
        the same collector never overlap.
        """
        self._stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        handled_signals = []
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.stop)
                handled_signals.append(sig)
            except (NotImplementedError, RuntimeError):
                self.logger.debug(f"Signal handlers unavailable for {sig.name}")

        reporter_task = asyncio.create_task(self.reporter.run(self.queue))

        self.scheduler = AsyncIOScheduler()
        trigger = IntervalTrigger(seconds=self.config.collect_interval_s)
        for collector in self.collectors:
            self.scheduler.add_job(
                self.run_collector,
                trigger=trigger,
                args=[collector],
                id=f"collect_{collector.name}",
                name=f"{collector.name} collection",
                max_instances=1,  # Serialize calls per collector instance
                coalesce=True,
                next_run_time=datetime.now(timezone.utc)
            )

        self.scheduler.start()
        self.logger.info(
            f"Scheduler started, interval {self.config.collect_interval_ms}ms"
        )

        try:
            await self._stop_event.wait()
        finally:
            if self.scheduler.running:
                self.scheduler.shutdown(wait=False)
            await self.queue.put(None)
            await reporter_task
            for sig in handled_signals:
                loop.remove_signal_handler(sig)
            self.logger.info(
                f"Agent stopped: {self.reporter.sent_count} reports sent, "
                f"{self.reporter.dropped_count} dropped, "
                f"{self.failure_count} collection failures"
            )

    def stop(self) -> None:
        """Request graceful shutdown of run_forever()."""
        self.logger.info("Shutdown requested")
        if self._stop_event is not None:
            self._stop_event.set()


def main():
    """
    CLI entry point.

    Parses command-line arguments and starts the agent.
    """
    parser = argparse.ArgumentParser(
        description='Host health agent sampling CPU and memory from /proc',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run continuously (default)
  python -m infra_health_agent.main

  # Run one collection cycle and exit
  python -m infra_health_agent.main --run-once

  # Use custom config file with JSON logs
  python -m infra_health_agent.main --config /etc/infra-health/agent.yaml --json-logs
        """
    )

    parser.add_argument(
        '--config',
        default=os.getenv('INFRA_HEALTH_CONFIG'),
        help='Path to YAML configuration file (default: INFRA_HEALTH_CONFIG env var)'
    )

    parser.add_argument(
        '--run-once',
        action='store_true',
        help='Run one collection cycle and exit (no scheduler)'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (overrides config)'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit structured JSON logs'
    )

    args = parser.parse_args()

    try:
        config = ConfigLoader.load(args.config)
    except Exception as e:
        logging.basicConfig()
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    overrides = {}
    if args.log_level:
        overrides['log_level'] = args.log_level
    if args.json_logs:
        overrides['json_logs'] = True
    if overrides:
        config = config.model_copy(update=overrides)

    logger = setup_logger("infra_health_agent", config.log_level, config.json_logs)
    agent = HealthAgent(config, logger)

    if args.run_once:
        ok = asyncio.run(agent.run_once())
        sys.exit(0 if ok else 1)

    try:
        asyncio.run(agent.run_forever())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")


if __name__ == '__main__':
    main()

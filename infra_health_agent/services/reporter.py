"""Report delivery for collection results."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..utils.metrics import CollectionResult
from .retry_handler import RetryHandler


Sink = Callable[[str], Union[None, Awaitable[None]]]


class Reporter:
    """
    Serializes collection results and hands them to a delivery sink.

    Each result is one independent report. Delivery failures are retried
    with exponential backoff and dropped once retries are exhausted.
    """

    def __init__(
        self,
        agent_id: str,
        sink: Optional[Sink] = None,
        max_retries: int = 3,
        retry_backoff_ms: int = 500,
        logger: logging.Logger = None
    ):
        """
        Initialize reporter.

        Args:
            agent_id: Identifier stamped on every report
            sink: Sync or async callable receiving the JSON document;
                defaults to logging the report
            max_retries: Retries after the first failed delivery
            retry_backoff_ms: Base backoff between attempts
            logger: Optional logger instance
        """
        self.agent_id = agent_id
        self.logger = (logger or logging.getLogger(__name__)).getChild("Reporter")
        self.sink = sink or self._log_sink
        self.max_retries = max_retries
        self.retry_backoff_s = retry_backoff_ms / 1000
        self.sent_count = 0
        self.dropped_count = 0

    def build_report(self, result: CollectionResult) -> Dict[str, Any]:
        """
        Wrap a result in the report envelope.

        Returns:
            Dict[str, Any]: {"agent_id", "timestamp", "report"}
        """
        return {
            "agent_id": self.agent_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "report": result.to_dict(),
        }

    async def send(self, result: CollectionResult) -> None:
        """
        Deliver one result through the sink, retrying on failure.

        Raises:
            Exception: Last sink error once all attempts are exhausted
        """
        document = json.dumps(self.build_report(result))
        await RetryHandler.with_retry(
            lambda: self.sink(document),
            max_attempts=self.max_retries + 1,
            base_delay=self.retry_backoff_s,
            logger=self.logger
        )
        self.sent_count += 1

    async def run(self, queue: "asyncio.Queue[Optional[CollectionResult]]") -> None:
        """
        Drain the report queue until a None sentinel arrives.

        Args:
            queue: Bounded queue filled by the collection loop
        """
        while True:
            result = await queue.get()
            try:
                if result is None:
                    self.logger.info("Report queue closed")
                    return
                await self.send(result)
            except Exception as e:
                self.dropped_count += 1
                self.logger.error(
                    f"Dropping {result.check_name} report: {e}",
                    extra={"error_type": type(e).__name__}
                )
            finally:
                queue.task_done()

    def _log_sink(self, document: str) -> None:
        self.logger.info(f"Sending report: {document}")

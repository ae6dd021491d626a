"""Concurrent fan-out of request bodies, one delivery task per chunk.

The dispatcher consumes the (lazy) chunk sequence and starts a task for each
body before reading the next one, so delivery overlaps with chunking. There is
no concurrency cap. ``dispatch`` returns once every started task, including
all of its retries, has finished.
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from fastpurge.core.services.retrier import DeliveryRetrier
from fastpurge.domain.models.purge import DeliveryOutcome, DeliveryResult, RequestBody

logger = logging.getLogger(__name__)


class PurgeDispatcher:
    """Starts and joins delivery tasks for a sequence of request bodies."""

    def __init__(self, retrier: DeliveryRetrier, log: Optional[logging.Logger] = None):
        self.retrier = retrier
        self.log = log or logger

    async def dispatch(self, bodies: Iterable[RequestBody]) -> List[DeliveryResult]:
        """Delivers every body concurrently and waits for all of them.

        Args:
            bodies: Chunk sequence; may raise while being consumed.

        Returns:
            One DeliveryResult per body, in dispatch order.

        Raises:
            MalformedInputError: Re-raised from ``bodies`` after the tasks
                already started have completed.
            SigningError: Outstanding tasks are cancelled first. Any other
                exception raised by a task is handled the same way.
        """
        tasks: List["asyncio.Task[DeliveryResult]"] = []
        try:
            for body in bodies:
                tasks.append(asyncio.create_task(self.retrier.deliver(body)))
                # Let the new task start sending before the next chunk is built.
                await asyncio.sleep(0)
        except Exception:
            if tasks:
                self.log.warning(
                    f"Chunk production aborted; waiting for {len(tasks)} already dispatched chunk(s)"
                )
                await self._join(tasks)
            raise

        self.log.info(f"Dispatched {len(tasks)} chunk(s); waiting for delivery to finish")
        return await self._join(tasks)

    async def _join(self, tasks: List["asyncio.Task[DeliveryResult]"]) -> List[DeliveryResult]:
        try:
            results = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        self._log_summary(results)
        return list(results)

    def _log_summary(self, results: List[DeliveryResult]) -> None:
        counts = {outcome: 0 for outcome in DeliveryOutcome}
        for result in results:
            counts[result.outcome] += 1
        self.log.info(
            f"Delivery finished: {counts[DeliveryOutcome.SUCCEEDED]} succeeded, "
            f"{counts[DeliveryOutcome.FAILED_TERMINAL]} failed, "
            f"{counts[DeliveryOutcome.EXHAUSTED_RETRIES]} exhausted retries"
        )

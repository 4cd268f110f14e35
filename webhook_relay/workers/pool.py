"""Queue consumer loop with bounded concurrency."""

import asyncio
from typing import Any, Awaitable, Callable

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from webhook_relay.exceptions import (
    DeliveryFailureError,
    InactiveSubscriptionError,
    NotFoundError,
    RetriesExhaustedError,
)
from webhook_relay.logging.config import get_logger
from webhook_relay.queue import JobQueue, ReceivedJob

logger = get_logger(__name__)

JobHandler = Callable[[dict[str, Any]], Awaitable[Any]]

# Errors after which the job can never succeed
FATAL_ERRORS = (NotFoundError, InactiveSubscriptionError, ValidationError)
# Errors whose outcome the handler already persisted
HANDLED_ERRORS = (DeliveryFailureError, RetriesExhaustedError)


def _job_context(job: ReceivedJob, queue_name: str) -> dict[str, Any]:
    data = job.data if isinstance(job.data, dict) else {}
    context = {
        "queue": queue_name,
        "job_id": job.job_id,
        "job_name": job.name,
        "attempts_made": job.attempts_made,
    }
    for key in ("event_id", "subscription_id", "delivery_attempt"):
        if key in data:
            context[key] = data[key]
    return context


class WorkerPool:
    """
    Pulls jobs from one queue and runs a handler on each.

    At most ``concurrency`` handlers run at once. A job is acked once its
    handler returns or fails in a way the handler already accounted for;
    unexpected failures are released back to the queue with the queue's
    backoff until its attempts run out.
    """

    def __init__(
        self,
        queue: JobQueue,
        handler: JobHandler,
        concurrency: int = 5,
        wait_seconds: int = 20,
        error_backoff_seconds: float = 5.0,
    ) -> None:
        """
        Initialize WorkerPool.

        Args:
            queue: Queue to consume
            handler: Coroutine function run with each job's data
            concurrency: Maximum jobs processed at once
            wait_seconds: Long-poll wait per receive
            error_backoff_seconds: Pause after a failed receive
        """
        self.queue = queue
        self.handler = handler
        self.concurrency = concurrency
        self.wait_seconds = wait_seconds
        self.error_backoff_seconds = error_backoff_seconds
        self._semaphore = asyncio.Semaphore(concurrency)
        self._stop = asyncio.Event()
        self._in_flight: set[asyncio.Task] = set()

    def stop(self) -> None:
        """Stop polling; in-flight jobs are allowed to finish."""
        if not self._stop.is_set():
            logger.info(
                "Worker pool stopping",
                extra={"context": {"queue": self.queue.queue_name, "in_flight": len(self._in_flight)}},
            )
        self._stop.set()

    async def run(self) -> None:
        """Consume the queue until ``stop`` is called, then drain in-flight jobs."""
        logger.info(
            "Worker pool started",
            extra={"context": {"queue": self.queue.queue_name, "concurrency": self.concurrency}},
        )

        while not self._stop.is_set():
            free = self.concurrency - len(self._in_flight)
            if free <= 0:
                await asyncio.wait(self._in_flight, return_when=asyncio.FIRST_COMPLETED)
                continue

            try:
                jobs = await self.queue.receive(max_jobs=free, wait_seconds=self.wait_seconds)
            except (BotoCoreError, ClientError) as exc:
                logger.error(
                    "Failed to receive jobs",
                    extra={"context": {"queue": self.queue.queue_name, "error": str(exc)}},
                )
                await self._pause(self.error_backoff_seconds)
                continue

            for job in jobs:
                task = asyncio.create_task(self.process(job))
                self._in_flight.add(task)
                task.add_done_callback(self._in_flight.discard)

        if self._in_flight:
            results = await asyncio.gather(*self._in_flight, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(
                        "Job task failed during drain",
                        exc_info=result,
                        extra={"context": {"queue": self.queue.queue_name}},
                    )
        logger.info("Worker pool stopped", extra={"context": {"queue": self.queue.queue_name}})

    async def _pause(self, seconds: float) -> None:
        """Sleep, waking early if the pool is stopped."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def process(self, job: ReceivedJob) -> None:
        """
        Run the handler on one job and settle it with the queue.

        Args:
            job: Received job
        """
        context = _job_context(job, self.queue.queue_name)

        async with self._semaphore:
            try:
                result = await self.handler(job.data)
            except FATAL_ERRORS as exc:
                logger.error(
                    "Job dropped: %s",
                    exc,
                    extra={"context": {**context, "error_type": type(exc).__name__}},
                )
                await self._settle(job, context)
            except DeliveryFailureError as exc:
                logger.warning(
                    "Job finished with scheduled retry",
                    extra={"context": {**context, "retry_delay_ms": exc.retry_delay_ms}},
                )
                await self._settle(job, context)
            except RetriesExhaustedError as exc:
                logger.error(
                    "Job finished with retries exhausted: %s",
                    exc.message,
                    extra={"context": context},
                )
                await self._settle(job, context)
            except Exception:
                policy = self.queue.policy
                if job.attempts_made >= policy.max_attempts:
                    logger.exception(
                        "Job dead after %d attempts",
                        job.attempts_made,
                        extra={"context": context},
                    )
                    await self._settle(job, context)
                else:
                    delay_ms = policy.delay_ms(job.attempts_made)
                    logger.exception(
                        "Job failed, releasing for redelivery",
                        extra={"context": {**context, "retry_delay_ms": delay_ms}},
                    )
                    await self._settle(job, context, release_delay_ms=delay_ms)
            else:
                logger.info(
                    "Job completed",
                    extra={"context": {**context, "result": result}},
                )
                await self._settle(job, context)

    async def _settle(
        self,
        job: ReceivedJob,
        context: dict[str, Any],
        release_delay_ms: int | None = None,
    ) -> None:
        """Ack the job, or release it when a delay is given."""
        try:
            if release_delay_ms is None:
                await self.queue.ack(job)
            else:
                await self.queue.release(job, release_delay_ms)
        except (BotoCoreError, ClientError) as exc:
            # The job reappears once its visibility timeout lapses
            logger.error(
                "Failed to settle job with queue",
                extra={"context": {**context, "error": str(exc)}},
            )

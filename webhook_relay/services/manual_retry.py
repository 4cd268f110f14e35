"""Operator-initiated redelivery of a logged webhook attempt."""

import asyncio
import time
from dataclasses import dataclass

from webhook_relay.exceptions import (
    InactiveSubscriptionError,
    NotFoundError,
    RetriesExhaustedError,
)
from webhook_relay.logging.config import get_logger
from webhook_relay.queue import JobQueue, webhook_delivery_queue
from webhook_relay.repositories.delivery_log_repository import DeliveryLogRepository
from webhook_relay.repositories.event_repository import EventRepository
from webhook_relay.repositories.subscription_repository import SubscriptionRepository
from webhook_relay.schemas.jobs import DELIVERY_JOB, DeliveryJob

logger = get_logger(__name__)


@dataclass
class RetryResult:
    """A queued manual retry."""

    delivery_log_id: str
    delivery_attempt: int
    job_id: str


class ManualRetryService:
    """Schedules one more delivery attempt for an existing DeliveryLog."""

    def __init__(
        self,
        logs: DeliveryLogRepository | None = None,
        events: EventRepository | None = None,
        subscriptions: SubscriptionRepository | None = None,
        delivery_queue: JobQueue | None = None,
    ) -> None:
        self.logs = logs or DeliveryLogRepository()
        self.events = events or EventRepository()
        self.subscriptions = subscriptions or SubscriptionRepository()
        self.delivery_queue = delivery_queue or webhook_delivery_queue()

    async def retry(self, log_id: str) -> RetryResult:
        """
        Queue the attempt following the given log.

        Args:
            log_id: DeliveryLog identifier

        Returns:
            RetryResult with the number of the queued attempt

        Raises:
            NotFoundError: If the log, its event or its subscription is missing
            InactiveSubscriptionError: If the subscription is inactive
            RetriesExhaustedError: If the log's attempt already reached max_retries
        """
        log = await self.logs.get_by_id(log_id)
        if log is None:
            raise NotFoundError("delivery_log", log_id)

        event, subscription = await asyncio.gather(
            self.events.get_by_id(log.event_id),
            self.subscriptions.get_by_id(log.subscription_id),
        )
        if event is None:
            raise NotFoundError("event", log.event_id)
        if subscription is None:
            raise NotFoundError("subscription", log.subscription_id)
        if not subscription.is_active:
            raise InactiveSubscriptionError(subscription.id)
        if log.delivery_attempt >= subscription.max_retries:
            raise RetriesExhaustedError(
                subscription.max_retries,
                details={
                    "delivery_log_id": log.id,
                    "delivery_attempt": log.delivery_attempt,
                },
            )

        attempt = log.delivery_attempt + 1
        job = DeliveryJob(
            event_id=event.id,
            subscription_id=subscription.id,
            delivery_attempt=attempt,
            is_retry=True,
        )
        job_id = f"retry-{event.event_id}-{subscription.id}-{int(time.time() * 1000)}"
        await self.delivery_queue.submit(DELIVERY_JOB, job.model_dump(), job_id=job_id)

        logger.info(
            "Manual retry queued",
            extra={
                "context": {
                    "delivery_log_id": log.id,
                    "event_id": event.event_id,
                    "subscription_id": subscription.id,
                    "attempt": attempt,
                }
            },
        )
        return RetryResult(delivery_log_id=log.id, delivery_attempt=attempt, job_id=job_id)

"""Event router: fans an admitted event out to matching subscriptions."""

import time
from typing import Any

from webhook_relay.exceptions import NotFoundError
from webhook_relay.logging.config import get_logger
from webhook_relay.queue import Job, JobQueue, webhook_delivery_queue
from webhook_relay.repositories.event_repository import EventRepository
from webhook_relay.repositories.subscription_repository import SubscriptionRepository
from webhook_relay.schemas.jobs import DELIVERY_JOB, DeliveryJob, RoutingJob

logger = get_logger(__name__)


class EventRouter:
    """
    Handles routing jobs.

    Every active subscription whose event types include the event's type
    gets one attempt-1 delivery job. All jobs for an event go to the
    queue in one batch submission.
    """

    def __init__(
        self,
        events: EventRepository | None = None,
        subscriptions: SubscriptionRepository | None = None,
        delivery_queue: JobQueue | None = None,
    ) -> None:
        """
        Initialize EventRouter.

        Args:
            events: EventRepository instance (creates new if None)
            subscriptions: SubscriptionRepository instance (creates new if None)
            delivery_queue: Webhook-delivery JobQueue (creates new if None)
        """
        self.events = events or EventRepository()
        self.subscriptions = subscriptions or SubscriptionRepository()
        self.delivery_queue = delivery_queue or webhook_delivery_queue()

    async def handle(self, data: dict[str, Any]) -> dict[str, Any]:
        """
        Route one event.

        Args:
            data: RoutingJob payload

        Returns:
            Summary with the public event ID and number of deliveries queued

        Raises:
            NotFoundError: If the event is missing (store/queue inconsistency)
        """
        job = RoutingJob.model_validate(data)

        event = await self.events.get_by_id(job.event_id)
        if event is None:
            raise NotFoundError("event", job.event_id)

        subscriptions = await self.subscriptions.find_active_for_event_type(job.event_type)
        logger.info(
            "Matched subscriptions for event",
            extra={
                "context": {
                    "event_id": event.event_id,
                    "event_type": job.event_type,
                    "subscriptions": len(subscriptions),
                }
            },
        )

        now_ms = int(time.time() * 1000)
        jobs = [
            Job(
                name=DELIVERY_JOB,
                data=DeliveryJob(
                    event_id=event.id,
                    subscription_id=subscription.id,
                    delivery_attempt=1,
                ).model_dump(),
                job_id=f"{event.event_id}-{subscription.id}-{now_ms}",
            )
            for subscription in subscriptions
        ]

        if jobs:
            await self.delivery_queue.submit_batch(jobs)
            logger.info(
                "Queued webhook deliveries",
                extra={"context": {"event_id": event.event_id, "deliveries": len(jobs)}},
            )
        else:
            logger.info(
                "No active subscriptions for event type",
                extra={"context": {"event_id": event.event_id, "event_type": job.event_type}},
            )

        return {
            "event_id": event.event_id,
            "event_type": job.event_type,
            "subscriptions_processed": len(subscriptions),
            "deliveries_queued": len(jobs),
        }

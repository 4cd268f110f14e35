"""Delivery worker: signed webhook POSTs with bounded exponential retry."""

import asyncio
import time
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import httpx

from webhook_relay.config import settings
from webhook_relay.exceptions import (
    DeliveryFailureError,
    InactiveSubscriptionError,
    NotFoundError,
    RetriesExhaustedError,
)
from webhook_relay.logging.config import get_logger
from webhook_relay.models.delivery_log import DeliveryLog, DeliveryStatus
from webhook_relay.models.event import Event
from webhook_relay.models.subscription import Subscription
from webhook_relay.queue import JobQueue, webhook_delivery_queue
from webhook_relay.repositories.delivery_log_repository import DeliveryLogRepository
from webhook_relay.repositories.event_repository import EventRepository
from webhook_relay.repositories.subscription_repository import SubscriptionRepository
from webhook_relay.schemas.jobs import DELIVERY_JOB, DeliveryJob
from webhook_relay.services.signer import HmacSigner
from webhook_relay.utils.timestamps import isoformat, now_iso, utc_now

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Relay-Signature"
EVENT_TYPE_HEADER = "X-Relay-Event-Type"
EVENT_ID_HEADER = "X-Relay-Event-Id"
DELIVERY_ID_HEADER = "X-Relay-Delivery-Id"
ATTEMPT_HEADER = "X-Relay-Attempt"


def retry_delay_ms(
    attempt: int,
    base_ms: int = settings.retry_base_delay_ms,
    cap_ms: int = settings.retry_max_delay_ms,
) -> int:
    """
    Delay before the attempt following ``attempt``.

    Attempt 1 waits base, attempt 2 waits 2 * base, and so on up to cap.

    Args:
        attempt: Number of the attempt that just failed (1-based)
        base_ms: Delay after the first attempt
        cap_ms: Upper bound

    Returns:
        Delay in milliseconds
    """
    return min(base_ms * 2 ** (attempt - 1), cap_ms)


@dataclass
class AttemptOutcome:
    """Result of one HTTP POST to a subscriber."""

    delivered: bool
    response_status: int | None = None
    response_body: str | None = None
    error: str | None = None


class DeliveryWorker:
    """
    Handles webhook-delivery jobs.

    Each job is one attempt and produces one DeliveryLog. Any response
    below 500 counts as delivered. Server errors and transport failures
    schedule the next attempt until the subscription's max_retries is
    reached; the next job is enqueued only after this attempt's outcome
    is persisted.
    """

    def __init__(
        self,
        events: EventRepository | None = None,
        subscriptions: SubscriptionRepository | None = None,
        logs: DeliveryLogRepository | None = None,
        delivery_queue: JobQueue | None = None,
        signer: HmacSigner | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize DeliveryWorker.

        Args:
            events: EventRepository instance (creates new if None)
            subscriptions: SubscriptionRepository instance (creates new if None)
            logs: DeliveryLogRepository instance (creates new if None)
            delivery_queue: Webhook-delivery JobQueue for follow-up attempts
            signer: HmacSigner instance (creates new if None)
            http_client: HTTP client (created on first delivery if None)
        """
        self.events = events or EventRepository()
        self.subscriptions = subscriptions or SubscriptionRepository()
        self.logs = logs or DeliveryLogRepository()
        self.delivery_queue = delivery_queue or webhook_delivery_queue()
        self.signer = signer or HmacSigner()
        self._client = http_client

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                max_redirects=settings.webhook_max_redirects,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def handle(self, data: dict[str, Any]) -> dict[str, Any]:
        """
        Perform one delivery attempt.

        Args:
            data: DeliveryJob payload

        Returns:
            Summary of a delivered attempt

        Raises:
            NotFoundError: If the event or subscription is missing (fatal)
            InactiveSubscriptionError: If the subscription is inactive (fatal)
            DeliveryFailureError: If the attempt failed and another is scheduled
            RetriesExhaustedError: If the attempt failed and it was the last one
        """
        job = DeliveryJob.model_validate(data)
        attempt = job.delivery_attempt

        event, subscription = await asyncio.gather(
            self.events.get_by_id(job.event_id),
            self.subscriptions.get_by_id(job.subscription_id),
        )
        if event is None:
            raise NotFoundError("event", job.event_id)
        if subscription is None:
            raise NotFoundError("subscription", job.subscription_id)
        if not subscription.is_active:
            raise InactiveSubscriptionError(subscription.id)

        context = {
            "event_id": event.event_id,
            "subscription_id": subscription.id,
            "attempt": attempt,
            "max_retries": subscription.max_retries,
        }

        timestamp = now_iso()
        log = DeliveryLog(
            id=str(uuid.uuid4()),
            event_id=event.id,
            subscription_id=subscription.id,
            delivery_attempt=attempt,
            status=DeliveryStatus.PENDING,
            created_at=timestamp,
            updated_at=timestamp,
        )
        await self.logs.create(log)

        logger.info(
            "Webhook delivery attempt",
            extra={"context": {**context, "delivery_id": log.id, "is_retry": job.is_retry}},
        )

        outcome = await self._post(event, subscription, log)

        if outcome.delivered:
            log.status = DeliveryStatus.SUCCESS
            log.response_status = outcome.response_status
            log.response_body = outcome.response_body
            log.delivered_at = now_iso()
            log.hmac_verified = True
            await self.logs.save(log)

            logger.info(
                "Webhook delivered",
                extra={
                    "context": {
                        **context,
                        "delivery_id": log.id,
                        "response_status": outcome.response_status,
                    }
                },
            )
            return {
                "success": True,
                "status": outcome.response_status,
                "delivery_id": log.id,
            }

        error = (outcome.error or "Delivery failed")[: settings.error_max_chars]
        log.status = DeliveryStatus.FAILED
        log.error = error
        log.response_status = outcome.response_status
        log.response_body = outcome.response_body

        if attempt < subscription.max_retries:
            delay_ms = retry_delay_ms(attempt)
            log.next_retry_at = isoformat(utc_now() + timedelta(milliseconds=delay_ms))
            log.status = DeliveryStatus.RETRYING
            await self.logs.save(log)

            next_job = DeliveryJob(
                event_id=event.id,
                subscription_id=subscription.id,
                delivery_attempt=attempt + 1,
            )
            await self.delivery_queue.submit(
                DELIVERY_JOB,
                next_job.model_dump(),
                job_id=f"{event.event_id}-{subscription.id}-{int(time.time() * 1000)}",
                delay_ms=delay_ms,
            )

            logger.warning(
                "Webhook delivery failed, retry scheduled",
                extra={
                    "context": {
                        **context,
                        "delivery_id": log.id,
                        "error": error,
                        "retry_delay_ms": delay_ms,
                    }
                },
            )
            raise DeliveryFailureError(
                f"Delivery failed, will retry: {error}",
                attempt=attempt,
                retry_delay_ms=delay_ms,
                details={"delivery_id": log.id},
            )

        await self.logs.save(log)
        logger.error(
            "Webhook delivery failed, retries exhausted",
            extra={"context": {**context, "delivery_id": log.id, "error": error}},
        )
        raise RetriesExhaustedError(
            subscription.max_retries,
            message=f"Delivery failed after {subscription.max_retries} attempts: {error}",
            details={"delivery_id": log.id},
        )

    async def _post(
        self, event: Event, subscription: Subscription, log: DeliveryLog
    ) -> AttemptOutcome:
        """
        POST the signed payload to the subscriber.

        Args:
            event: Event being delivered
            subscription: Target subscription
            log: DeliveryLog of this attempt

        Returns:
            AttemptOutcome; transport errors are captured, not raised
        """
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: self.signer.sign(event.payload, subscription.secret),
            EVENT_TYPE_HEADER: event.event_type,
            EVENT_ID_HEADER: event.event_id,
            DELIVERY_ID_HEADER: log.id,
            ATTEMPT_HEADER: str(log.delivery_attempt),
            "User-Agent": settings.webhook_user_agent,
        }
        client = self._ensure_client()

        try:
            response = await client.post(
                subscription.webhook_url,
                content=self.signer.serialize(event.payload),
                headers=headers,
                timeout=subscription.timeout_seconds,
            )
        except httpx.TimeoutException:
            return AttemptOutcome(
                delivered=False,
                error=f"Timeout after {subscription.timeout_ms}ms",
            )
        except httpx.TooManyRedirects as exc:
            return AttemptOutcome(delivered=False, error=f"Too many redirects: {exc}")
        except httpx.RequestError as exc:
            return AttemptOutcome(
                delivered=False,
                error=(
                    "Network error: No response received from webhook endpoint"
                    f" ({type(exc).__name__}: {exc})"
                ),
            )

        body = response.text[: settings.response_body_max_chars]
        if response.status_code < 500:
            return AttemptOutcome(
                delivered=True,
                response_status=response.status_code,
                response_body=body,
            )
        return AttemptOutcome(
            delivered=False,
            response_status=response.status_code,
            response_body=body,
            error=f"Request failed with status code {response.status_code}",
        )

"""Shared fixtures: in-memory stores and queues standing in for DynamoDB and SQS."""

import asyncio
import uuid
from collections import deque
from typing import Any, Callable

import httpx
import pytest

from webhook_relay.exceptions import DuplicateEventError
from webhook_relay.models.delivery_log import DeliveryLog
from webhook_relay.models.event import Event
from webhook_relay.models.subscription import Subscription
from webhook_relay.queue import Job, JobPolicy, ReceivedJob
from webhook_relay.utils.timestamps import now_iso


class InMemoryEventRepository:
    """EventRepository with the same idempotency guarantee, kept in dicts."""

    def __init__(self) -> None:
        self.events: dict[str, Event] = {}
        self.claims: dict[str, str] = {}

    async def create(self, event: Event) -> Event:
        if event.idempotency_key in self.claims:
            raise DuplicateEventError(event.idempotency_key)
        self.claims[event.idempotency_key] = event.id
        self.events[event.id] = event
        return event

    async def get_by_id(self, id: str) -> Event | None:
        return self.events.get(id)

    async def get_by_idempotency_key(self, idempotency_key: str) -> Event | None:
        event_id = self.claims.get(idempotency_key)
        return self.events.get(event_id) if event_id else None

    async def get_by_public_id(self, event_id: str) -> Event | None:
        for event in self.events.values():
            if event.event_id == event_id:
                return event
        return None


class InMemorySubscriptionRepository:
    def __init__(self) -> None:
        self.subscriptions: dict[str, Subscription] = {}

    async def create(self, subscription: Subscription) -> Subscription:
        self.subscriptions[subscription.id] = subscription
        return subscription

    async def get_by_id(self, subscription_id: str) -> Subscription | None:
        return self.subscriptions.get(subscription_id)

    async def find_active_for_event_type(self, event_type: str) -> list[Subscription]:
        return [
            sub
            for sub in self.subscriptions.values()
            if sub.is_active and event_type in sub.event_types
        ]

    async def list_all(self) -> list[Subscription]:
        return list(self.subscriptions.values())

    async def set_active(self, subscription_id: str, is_active: bool) -> Subscription | None:
        subscription = self.subscriptions.get(subscription_id)
        if subscription is None:
            return None
        updated = subscription.model_copy(update={"is_active": is_active})
        self.subscriptions[subscription_id] = updated
        return updated


class InMemoryDeliveryLogRepository:
    """Keeps the latest state of each log plus every persisted status in order."""

    def __init__(self) -> None:
        self.logs: dict[str, DeliveryLog] = {}
        self.writes: list[tuple[str, str]] = []

    async def create(self, log: DeliveryLog) -> DeliveryLog:
        self.logs[log.id] = log.model_copy()
        self.writes.append((log.id, log.status))
        return log

    async def save(self, log: DeliveryLog) -> DeliveryLog:
        log.updated_at = now_iso()
        self.logs[log.id] = log.model_copy()
        self.writes.append((log.id, log.status))
        return log

    async def get_by_id(self, log_id: str) -> DeliveryLog | None:
        return self.logs.get(log_id)

    async def list_for_event(self, event_id: str) -> list[DeliveryLog]:
        return sorted(
            (log for log in self.logs.values() if log.event_id == event_id),
            key=lambda log: (log.created_at, log.delivery_attempt),
        )

    async def list_by_status(self, status: str, limit: int = 50) -> list[DeliveryLog]:
        return [log for log in self.logs.values() if log.status == status][:limit]

    def by_attempt(self) -> list[DeliveryLog]:
        return sorted(self.logs.values(), key=lambda log: log.delivery_attempt)


class InMemoryJobQueue:
    """
    JobQueue stand-in recording submissions and settlements.

    Jobs placed with ``deliver`` are handed out by ``receive``.
    """

    def __init__(self, queue_name: str = "test-queue", policy: JobPolicy | None = None) -> None:
        self.queue_name = queue_name
        self.policy = policy or JobPolicy()
        self.submitted: list[Job] = []
        self.pending: deque[ReceivedJob] = deque()
        self.acked: list[ReceivedJob] = []
        self.released: list[tuple[ReceivedJob, int]] = []

    async def submit(
        self, name: str, data: dict[str, Any], job_id: str, delay_ms: int = 0
    ) -> str:
        self.submitted.append(Job(name=name, data=data, job_id=job_id, delay_ms=delay_ms))
        return job_id

    async def submit_batch(self, jobs: list[Job]) -> list[str]:
        self.submitted.extend(jobs)
        return [job.job_id for job in jobs]

    async def receive(self, max_jobs: int = 10, wait_seconds: int = 0) -> list[ReceivedJob]:
        jobs = []
        while self.pending and len(jobs) < max_jobs:
            jobs.append(self.pending.popleft())
        if not jobs:
            await asyncio.sleep(0.01)
        return jobs

    async def ack(self, job: ReceivedJob) -> None:
        self.acked.append(job)

    async def release(self, job: ReceivedJob, delay_ms: int = 0) -> None:
        self.released.append((job, delay_ms))

    def deliver(self, data: dict[str, Any], attempts_made: int = 1, name: str = "job") -> ReceivedJob:
        job = ReceivedJob(
            name=name,
            data=data,
            job_id=str(uuid.uuid4()),
            receipt_handle=str(uuid.uuid4()),
            attempts_made=attempts_made,
        )
        self.pending.append(job)
        return job

    def take(self) -> list[Job]:
        """Return and clear submitted jobs."""
        jobs, self.submitted = self.submitted, []
        return jobs


@pytest.fixture
def event_repo() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture
def subscription_repo() -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository()


@pytest.fixture
def log_repo() -> InMemoryDeliveryLogRepository:
    return InMemoryDeliveryLogRepository()


@pytest.fixture
def routing_queue() -> InMemoryJobQueue:
    return InMemoryJobQueue("event-processing", JobPolicy(max_attempts=3, backoff_ms=2000))


@pytest.fixture
def delivery_queue() -> InMemoryJobQueue:
    return InMemoryJobQueue(
        "webhook-delivery", JobPolicy(max_attempts=5, backoff_ms=1000, exponential=True)
    )


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory for Event models with sensible defaults."""

    def _make(**overrides: Any) -> Event:
        data = {
            "id": str(uuid.uuid4()),
            "event_id": str(uuid.uuid4()),
            "event_type": "job.created",
            "source_module": "JOBS",
            "payload": {"id": 1},
            "idempotency_key": f"key-{uuid.uuid4()}",
            "created_at": now_iso(),
        }
        data.update(overrides)
        return Event(**data)

    return _make


@pytest.fixture
def make_subscription() -> Callable[..., Subscription]:
    """Factory for Subscription models with sensible defaults."""

    def _make(**overrides: Any) -> Subscription:
        now = now_iso()
        data = {
            "id": str(uuid.uuid4()),
            "name": "Test subscriber",
            "webhook_url": "https://subscriber.example.com/hooks",
            "event_types": ["job.created"],
            "secret": "s3cret",
            "is_active": True,
            "max_retries": 3,
            "timeout_ms": 5000,
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return Subscription(**data)

    return _make


class RecordingEndpoint:
    """
    Subscriber endpoint for httpx.MockTransport.

    Answers with the queued statuses in order (repeating the last one)
    and records every request it receives.
    """

    def __init__(self, *statuses: int, body: str = "ok") -> None:
        self.statuses = list(statuses) or [200]
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.statuses) - 1)
        return httpx.Response(self.statuses[index], text=self.body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self),
            follow_redirects=True,
            max_redirects=2,
        )


@pytest.fixture
def endpoint_factory() -> Callable[..., RecordingEndpoint]:
    return RecordingEndpoint

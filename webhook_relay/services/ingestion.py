"""Ingestion gate: validates and idempotently admits events."""

import uuid
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from webhook_relay.exceptions import DuplicateEventError, InvalidInputError, QueueError
from webhook_relay.logging.config import get_logger
from webhook_relay.models.event import Event
from webhook_relay.queue import JobQueue, event_processing_queue
from webhook_relay.repositories.event_repository import EventRepository
from webhook_relay.schemas.event import CreateEventRequest
from webhook_relay.schemas.jobs import ROUTING_JOB, RoutingJob
from webhook_relay.utils.timestamps import now_iso

logger = get_logger(__name__)


@dataclass
class IngestResult:
    """Outcome of an ingestion: the public event ID and whether it already existed."""

    event_id: str
    duplicate: bool


class IngestionGate:
    """
    Admits events exactly once per idempotency key.

    A new event is stored and then announced to the router with a single
    routing job. A repeated key returns the stored event's ID without
    storing or enqueueing anything.
    """

    def __init__(
        self,
        repository: EventRepository | None = None,
        queue: JobQueue | None = None,
    ) -> None:
        """
        Initialize IngestionGate.

        Args:
            repository: EventRepository instance (creates new if None)
            queue: Event-processing JobQueue (creates new if None)
        """
        self.repository = repository or EventRepository()
        self.queue = queue or event_processing_queue()

    @staticmethod
    def validate(data: CreateEventRequest | Mapping[str, Any]) -> CreateEventRequest:
        """
        Validate raw ingestion input.

        Args:
            data: Request model or raw mapping

        Returns:
            Validated CreateEventRequest

        Raises:
            InvalidInputError: If a field is missing, empty or not allowed
        """
        if isinstance(data, CreateEventRequest):
            return data
        try:
            return CreateEventRequest.model_validate(dict(data))
        except ValidationError as exc:
            errors = [
                {
                    "field": ".".join(str(loc) for loc in error["loc"]) or "request",
                    "message": error["msg"],
                    "type": error["type"],
                }
                for error in exc.errors()
            ]
            raise InvalidInputError(
                message=(
                    "Missing or invalid fields: "
                    + ", ".join(error["field"] for error in errors)
                ),
                details={"validation_errors": errors},
            ) from exc

    async def ingest(self, data: CreateEventRequest | Mapping[str, Any]) -> IngestResult:
        """
        Admit an event.

        Args:
            data: Event submission

        Returns:
            IngestResult with the public event ID

        Raises:
            InvalidInputError: If the submission is invalid
            QueueError: If the event was stored but the routing job was not
                accepted; the event stays stored and unrouted
        """
        request = self.validate(data)

        existing = await self.repository.get_by_idempotency_key(request.idempotency_key)
        if existing:
            logger.info(
                "Event already processed with idempotency key",
                extra={
                    "context": {
                        "idempotency_key": request.idempotency_key,
                        "event_id": existing.event_id,
                    }
                },
            )
            return IngestResult(event_id=existing.event_id, duplicate=True)

        event = Event(
            id=str(uuid.uuid4()),
            event_id=str(uuid.uuid4()),
            event_type=request.event_type,
            source_module=request.source_module,
            payload=request.payload,
            idempotency_key=request.idempotency_key,
            created_at=now_iso(),
        )

        try:
            await self.repository.create(event)
        except DuplicateEventError:
            # Lost a race with a concurrent submission of the same key
            winner = await self.repository.get_by_idempotency_key(request.idempotency_key)
            if winner is None:
                raise
            logger.info(
                "Concurrent duplicate converged on existing event",
                extra={
                    "context": {
                        "idempotency_key": request.idempotency_key,
                        "event_id": winner.event_id,
                    }
                },
            )
            return IngestResult(event_id=winner.event_id, duplicate=True)

        logger.info(
            "Event created",
            extra={
                "context": {
                    "event_id": event.event_id,
                    "event_type": event.event_type,
                    "source_module": event.source_module,
                }
            },
        )

        routing_job = RoutingJob(event_id=event.id, event_type=event.event_type)
        try:
            await self.queue.submit(
                ROUTING_JOB,
                routing_job.model_dump(),
                job_id=f"route-{event.event_id}",
            )
        except QueueError as exc:
            logger.error(
                "Event stored but routing job was not enqueued",
                extra={
                    "context": {
                        "event_id": event.event_id,
                        "internal_id": event.id,
                        "idempotency_key": event.idempotency_key,
                    }
                },
            )
            raise QueueError(
                message=(
                    f"Event {event.event_id} was stored but could not be queued for routing;"
                    " resubmitting with the same idempotency key will not route it"
                ),
                queue=exc.details.get("queue"),
                retry_after=None,
                details={"event_id": event.event_id, "event_stored": True},
            ) from exc

        logger.info(
            "Event queued for processing",
            extra={"context": {"event_id": event.event_id}},
        )
        return IngestResult(event_id=event.event_id, duplicate=False)

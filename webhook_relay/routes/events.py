"""API routes for event ingestion."""

from fastapi import APIRouter, Depends, Response, status

from webhook_relay.dependencies import get_ingestion_gate
from webhook_relay.schemas.event import CreateEventRequest, EventResponse
from webhook_relay.services.ingestion import IngestionGate
from webhook_relay.utils.timestamps import now_iso

router = APIRouter(prefix="/events", tags=["Events"])


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        202: {
            "description": "Event accepted for processing",
            "content": {
                "application/json": {
                    "example": {
                        "status": "accepted",
                        "event_id": "550e8400-e29b-41d4-a716-446655440000",
                        "timestamp": "2025-11-11T12:00:00Z",
                        "message": "Event accepted for processing",
                    }
                }
            },
        },
        200: {
            "description": "Idempotency key already used; existing event returned",
            "content": {
                "application/json": {
                    "example": {
                        "status": "accepted",
                        "event_id": "550e8400-e29b-41d4-a716-446655440000",
                        "timestamp": "2025-11-11T12:00:05Z",
                        "message": "Event already processed",
                    }
                }
            },
        },
        400: {
            "description": "Validation error",
            "content": {
                "application/json": {
                    "example": {
                        "status": "error",
                        "error_code": "VALIDATION_ERROR",
                        "message": "event_type: Field is required",
                        "details": {
                            "validation_errors": [
                                {
                                    "field": "event_type",
                                    "message": "Field is required",
                                    "type": "missing",
                                }
                            ]
                        },
                    }
                }
            },
        },
        413: {"description": "Payload too large"},
        503: {
            "description": "Event stored but the job queue is unavailable",
            "content": {
                "application/json": {
                    "example": {
                        "status": "error",
                        "error_code": "SERVICE_UNAVAILABLE",
                        "message": "Job queue temporarily unavailable",
                        "details": {"retry_after": 60, "queue": "event-processing"},
                    }
                }
            },
        },
    },
)
async def create_event(
    event_request: CreateEventRequest,
    response: Response,
    gate: IngestionGate = Depends(get_ingestion_gate),
) -> EventResponse:
    """
    Submit an event for delivery to subscribers.

    The event is stored once per idempotency key and routed
    asynchronously. Repeating a key returns the original event ID with
    200 instead of 202.

    Args:
        event_request: Event submission
        response: Outgoing response (status code set here)
        gate: IngestionGate (injected by dependency)

    Returns:
        EventResponse with the public event ID

    Raises:
        QueueError: If the routing job could not be enqueued (503)
    """
    result = await gate.ingest(event_request)

    if result.duplicate:
        response.status_code = status.HTTP_200_OK
        message = "Event already processed"
    else:
        message = "Event accepted for processing"

    return EventResponse(
        status="accepted",
        event_id=result.event_id,
        timestamp=now_iso(),
        message=message,
    )

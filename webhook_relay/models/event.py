"""Event model for DynamoDB."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Event types that subscribers can register for."""

    JOB_CREATED = "job.created"
    CANDIDATE_APPLIED = "candidate.applied"
    INTERVIEW_SCHEDULED = "interview.scheduled"
    CANDIDATE_UPDATED = "candidate.updated"
    ASSESSMENT_COMPLETED = "assessment.completed"


class SourceModule(str, Enum):
    """Upstream modules allowed to emit events."""

    JOBS = "JOBS"
    CANDIDATES = "CANDIDATES"
    INTERVIEWS = "INTERVIEWS"
    ASSESSMENTS = "ASSESSMENTS"


class Event(BaseModel):
    """
    Event model representing an admitted event.

    Attributes:
        id: Internal identifier referenced by queue jobs and delivery logs
        event_id: Public identifier returned to callers and sent to subscribers
        event_type: Type of event, used for subscription matching
        source_module: Module that emitted the event
        payload: Arbitrary JSON value, relayed unmodified
        idempotency_key: Caller-supplied deduplication token (unique)
        created_at: ISO 8601 timestamp of record creation
    """

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "id": "0f8fad5b-d9cb-469f-a165-70867728950e",
                "event_id": "550e8400-e29b-41d4-a716-446655440000",
                "event_type": "job.created",
                "source_module": "JOBS",
                "payload": {"job_id": "J-123", "title": "Backend Engineer"},
                "idempotency_key": "jobs-J-123-created",
                "created_at": "2025-11-11T12:00:00Z",
            }
        },
    )

    id: str = Field(..., description="Internal event identifier (UUID)")
    event_id: str = Field(..., description="Public event identifier (UUID)")
    event_type: EventType = Field(..., description="Event type")
    source_module: SourceModule = Field(..., description="Emitting module")
    payload: Any = Field(..., description="Event payload (opaque JSON)")
    idempotency_key: str = Field(..., min_length=1, description="Idempotency key")
    created_at: str = Field(..., description="ISO 8601 creation timestamp")

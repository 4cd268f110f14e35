"""Pydantic schemas for event API requests and responses."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from webhook_relay.config import settings
from webhook_relay.models.event import EventType, SourceModule


class CreateEventRequest(BaseModel):
    """
    Request schema for submitting an event.

    Attributes:
        event_type: Registered event type (required)
        source_module: Emitting module (required)
        payload: Arbitrary non-empty JSON value (required, max 256KB)
        idempotency_key: Caller-supplied deduplication token (required)
    """

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "event_type": "job.created",
                "source_module": "JOBS",
                "payload": {"job_id": "J-123", "title": "Backend Engineer"},
                "idempotency_key": "jobs-J-123-created",
            }
        },
    )

    event_type: EventType = Field(..., description="Event type")
    source_module: SourceModule = Field(..., description="Emitting module")
    payload: Any = Field(..., description="Event payload (JSON, max 256KB)")
    idempotency_key: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Idempotency key (required, 1-255 chars)",
    )

    @field_validator("idempotency_key", mode="before")
    @classmethod
    def strip_idempotency_key(cls, v):
        """Treat a whitespace-only key as empty."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("payload")
    @classmethod
    def validate_payload(cls, v: Any) -> Any:
        """
        Validate payload is present, non-empty and under the size limit.

        Args:
            v: Payload value

        Returns:
            Validated payload

        Raises:
            ValueError: If payload is empty or exceeds the limit
        """
        if v is None or (isinstance(v, (str, dict, list)) and len(v) == 0):
            raise ValueError("Payload must not be empty")

        payload_size = len(json.dumps(v).encode("utf-8"))
        max_size = settings.max_payload_size_bytes

        if payload_size > max_size:
            raise ValueError(
                f"Payload size ({payload_size} bytes) "
                f"exceeds maximum of {max_size} bytes"
            )

        return v


class EventResponse(BaseModel):
    """
    Response schema for event ingestion.

    Attributes:
        status: Operation status ("accepted")
        event_id: Public event identifier (UUID)
        timestamp: ISO 8601 timestamp of the response
        message: Human-readable message
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "accepted",
                "event_id": "550e8400-e29b-41d4-a716-446655440000",
                "timestamp": "2025-11-11T12:00:00Z",
                "message": "Event accepted for processing",
            }
        }
    )

    status: str = Field(..., description="Operation status")
    event_id: str = Field(..., description="Public event UUID")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    message: str = Field(..., description="Human-readable message")

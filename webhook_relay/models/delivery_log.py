"""Delivery log model for DynamoDB."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DeliveryStatus(str, Enum):
    """Outcome of a single delivery attempt."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    RETRYING = "retrying"


class DeliveryLog(BaseModel):
    """
    Record of one delivery attempt of one event to one subscription.

    A retry produces a new record with an incremented attempt number;
    records are never shared between attempts.

    Attributes:
        id: Delivery identifier, sent to the subscriber as X-Relay-Delivery-Id
        event_id: Internal event identifier
        subscription_id: Subscription identifier
        delivery_attempt: Attempt number, starting at 1
        status: pending, success, failed or retrying
        response_status: HTTP status returned by the subscriber
        response_body: Truncated response body
        error: Failure description
        delivered_at: ISO 8601 timestamp of successful delivery
        next_retry_at: ISO 8601 timestamp the next attempt is scheduled for
        hmac_verified: Whether the signed payload was delivered
        created_at: ISO 8601 creation timestamp
        updated_at: ISO 8601 update timestamp
    """

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    id: str
    event_id: str
    subscription_id: str
    delivery_attempt: int = Field(default=1, ge=1)
    status: DeliveryStatus = DeliveryStatus.PENDING
    response_status: int | None = None
    response_body: str | None = Field(None, max_length=10000)
    error: str | None = Field(None, max_length=2000)
    delivered_at: str | None = None
    next_retry_at: str | None = None
    hmac_verified: bool = False
    created_at: str
    updated_at: str

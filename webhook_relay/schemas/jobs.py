"""Pydantic schemas for queue job payloads."""

from pydantic import BaseModel, ConfigDict, Field

from webhook_relay.models.event import EventType

ROUTING_JOB = "process-event"
DELIVERY_JOB = "webhook-delivery"


class RoutingJob(BaseModel):
    """
    Payload of an event-processing job.

    Attributes:
        event_id: Internal event identifier
        event_type: Event type used for subscription matching
    """

    model_config = ConfigDict(use_enum_values=True)

    event_id: str = Field(..., description="Internal event identifier")
    event_type: EventType = Field(..., description="Event type")


class DeliveryJob(BaseModel):
    """
    Payload of a webhook-delivery job.

    Attributes:
        event_id: Internal event identifier
        subscription_id: Target subscription
        delivery_attempt: Attempt number this job performs (starts at 1)
        is_retry: True when triggered by an operator
    """

    event_id: str = Field(..., description="Internal event identifier")
    subscription_id: str = Field(..., description="Subscription identifier")
    delivery_attempt: int = Field(default=1, ge=1)
    is_retry: bool = False

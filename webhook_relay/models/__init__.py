"""Data models for the webhook relay."""

from webhook_relay.models.delivery_log import DeliveryLog, DeliveryStatus
from webhook_relay.models.event import Event, EventType, SourceModule
from webhook_relay.models.subscription import Subscription

__all__ = [
    "DeliveryLog",
    "DeliveryStatus",
    "Event",
    "EventType",
    "SourceModule",
    "Subscription",
]

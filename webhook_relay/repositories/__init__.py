"""Repository layer for DynamoDB operations."""

from webhook_relay.repositories.delivery_log_repository import DeliveryLogRepository
from webhook_relay.repositories.event_repository import EventRepository
from webhook_relay.repositories.subscription_repository import SubscriptionRepository

__all__ = ["DeliveryLogRepository", "EventRepository", "SubscriptionRepository"]

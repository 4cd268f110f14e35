"""Subscription repository for DynamoDB operations."""

from typing import Any

import aioboto3
from botocore.exceptions import ClientError

from webhook_relay.config import settings
from webhook_relay.models.subscription import Subscription
from webhook_relay.repositories.base import BaseRepository
from webhook_relay.utils.timestamps import now_iso


class SubscriptionRepository(BaseRepository):
    """
    Repository for Subscription operations in DynamoDB.

    The relay core only reads subscriptions; writes come from the
    operator CLI.
    """

    def __init__(self, session: aioboto3.Session | None = None) -> None:
        """Initialize SubscriptionRepository with subscriptions table."""
        super().__init__(settings.dynamodb_table_subscriptions, session)

    def _serialize_subscription(self, subscription: Subscription) -> dict[str, Any]:
        """Convert Subscription model to a DynamoDB item, secret included."""
        item = subscription.model_dump(exclude_none=True)
        item["secret"] = subscription.secret
        # Numeric flag so the ActiveIndex GSI can key on it
        item["is_active"] = 1 if subscription.is_active else 0
        return item

    def _deserialize_subscription(self, item: dict[str, Any]) -> Subscription:
        """
        Convert DynamoDB item to Subscription model.

        Args:
            item: DynamoDB item dict

        Returns:
            Subscription model with converted types
        """
        data = dict(item)
        data["is_active"] = bool(data.get("is_active", 0))
        for field in ("max_retries", "timeout_ms"):
            if field in data:
                data[field] = int(data[field])
        return Subscription(**data)

    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription.

        Args:
            subscription: Subscription model to store

        Returns:
            The created Subscription
        """
        await self.put_item(
            self._serialize_subscription(subscription),
            condition_expression="attribute_not_exists(id)",
        )
        return subscription

    async def get_by_id(self, subscription_id: str) -> Subscription | None:
        """
        Get subscription by ID.

        Args:
            subscription_id: Subscription identifier

        Returns:
            Subscription if found, None otherwise
        """
        item = await self.get_item({"id": subscription_id})
        if item:
            return self._deserialize_subscription(item)
        return None

    async def find_active_for_event_type(self, event_type: str) -> list[Subscription]:
        """
        List active subscriptions registered for an event type.

        Queries the ActiveIndex GSI and filters on event_types membership.

        Args:
            event_type: Event type to match

        Returns:
            Matching subscriptions
        """
        items = await self.query(
            IndexName="ActiveIndex",
            KeyConditionExpression="is_active = :active",
            FilterExpression="contains(event_types, :event_type)",
            ExpressionAttributeValues={":active": 1, ":event_type": event_type},
        )
        return [self._deserialize_subscription(item) for item in items]

    async def list_all(self) -> list[Subscription]:
        """List every subscription (active first)."""
        active = await self.query(
            IndexName="ActiveIndex",
            KeyConditionExpression="is_active = :active",
            ExpressionAttributeValues={":active": 1},
        )
        inactive = await self.query(
            IndexName="ActiveIndex",
            KeyConditionExpression="is_active = :active",
            ExpressionAttributeValues={":active": 0},
        )
        return [self._deserialize_subscription(item) for item in active + inactive]

    async def set_active(
        self, subscription_id: str, is_active: bool
    ) -> Subscription | None:
        """
        Activate or deactivate a subscription.

        Args:
            subscription_id: Subscription identifier
            is_active: New activation state

        Returns:
            Updated Subscription, None if not found
        """
        try:
            result = await self.update_item(
                {"id": subscription_id},
                "SET is_active = :active, updated_at = :updated_at",
                {
                    ":active": 1 if is_active else 0,
                    ":updated_at": now_iso(),
                },
            )
        except ClientError as exc:
            if exc.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return None
            raise
        return self._deserialize_subscription(result)

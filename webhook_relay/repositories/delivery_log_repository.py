"""Delivery log repository for DynamoDB operations."""

from typing import Any

import aioboto3

from webhook_relay.config import settings
from webhook_relay.models.delivery_log import DeliveryLog
from webhook_relay.repositories.base import BaseRepository
from webhook_relay.utils.timestamps import now_iso


class DeliveryLogRepository(BaseRepository):
    """
    Repository for DeliveryLog operations in DynamoDB.

    One item per delivery attempt. Items are created in ``pending`` state
    and overwritten once with the attempt's outcome by the worker that
    owns the attempt.
    """

    def __init__(self, session: aioboto3.Session | None = None) -> None:
        """Initialize DeliveryLogRepository with delivery logs table."""
        super().__init__(settings.dynamodb_table_delivery_logs, session)

    def _deserialize_log(self, item: dict[str, Any]) -> DeliveryLog:
        """
        Convert DynamoDB item to DeliveryLog model.

        Args:
            item: DynamoDB item dict

        Returns:
            DeliveryLog with numeric fields converted from Decimal
        """
        data = dict(item)
        for field in ("delivery_attempt", "response_status"):
            if data.get(field) is not None:
                data[field] = int(data[field])
        return DeliveryLog(**data)

    async def create(self, log: DeliveryLog) -> DeliveryLog:
        """
        Create a new delivery log.

        Args:
            log: DeliveryLog model to store

        Returns:
            The created DeliveryLog
        """
        await self.put_item(
            log.model_dump(exclude_none=True),
            condition_expression="attribute_not_exists(id)",
        )
        return log

    async def save(self, log: DeliveryLog) -> DeliveryLog:
        """
        Persist the current state of a delivery log.

        Args:
            log: DeliveryLog with updated outcome fields

        Returns:
            The saved DeliveryLog with a refreshed updated_at
        """
        log.updated_at = now_iso()
        await self.put_item(log.model_dump(exclude_none=True))
        return log

    async def get_by_id(self, log_id: str) -> DeliveryLog | None:
        """
        Get delivery log by ID.

        Args:
            log_id: Delivery log identifier

        Returns:
            DeliveryLog if found, None otherwise
        """
        item = await self.get_item({"id": log_id})
        if item:
            return self._deserialize_log(item)
        return None

    async def list_for_event(self, event_id: str) -> list[DeliveryLog]:
        """
        List delivery attempts for an event, oldest first.

        Args:
            event_id: Internal event identifier

        Returns:
            DeliveryLogs across all subscriptions for the event
        """
        items = await self.query(
            IndexName="EventIndex",
            KeyConditionExpression="event_id = :event_id",
            ExpressionAttributeValues={":event_id": event_id},
            ScanIndexForward=True,
        )
        return [self._deserialize_log(item) for item in items]

    async def list_by_status(self, status: str, limit: int = 50) -> list[DeliveryLog]:
        """
        List the most recent delivery attempts in a given status.

        Args:
            status: pending, success, failed or retrying
            limit: Maximum logs to return

        Returns:
            DeliveryLogs, newest first
        """
        items = await self.query(
            IndexName="StatusIndex",
            KeyConditionExpression="#status = :status",
            ExpressionAttributeNames={"#status": "status"},
            ExpressionAttributeValues={":status": status},
            ScanIndexForward=False,
            Limit=limit,
        )
        return [self._deserialize_log(item) for item in items]

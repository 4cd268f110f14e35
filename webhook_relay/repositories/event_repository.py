"""Event repository for DynamoDB operations."""

import json
from typing import Any

import aioboto3
from botocore.exceptions import ClientError

from webhook_relay.aws import get_aws_config
from webhook_relay.config import settings
from webhook_relay.exceptions import DuplicateEventError
from webhook_relay.models.event import Event
from webhook_relay.repositories.base import BaseRepository, marshal_item


def _is_idempotency_conflict(exc: ClientError) -> bool:
    """
    Tell whether a cancelled transaction lost the idempotency-key claim.

    The claim is the first item of the transaction, so its cancellation
    reason comes first.
    """
    error = exc.response.get("Error", {})
    if error.get("Code") != "TransactionCanceledException":
        return False
    reasons = exc.response.get("CancellationReasons") or []
    if reasons:
        return reasons[0].get("Code") == "ConditionalCheckFailed"
    return "ConditionalCheckFailed" in error.get("Message", "")


class EventRepository(BaseRepository):
    """
    Repository for Event operations in DynamoDB.

    Events live in the events table keyed by internal ``id``. Each
    idempotency key is claimed in a separate table in the same
    transaction that writes the event, so at most one event can exist
    per key even under concurrent submissions.
    """

    def __init__(self, session: aioboto3.Session | None = None) -> None:
        """Initialize EventRepository with the events and idempotency tables."""
        super().__init__(settings.dynamodb_table_events, session)
        self.idempotency_keys = BaseRepository(
            settings.dynamodb_table_idempotency_keys, self.session
        )

    def _serialize_event(self, event: Event) -> dict[str, Any]:
        """
        Convert Event model to a DynamoDB item.

        The payload is stored as JSON text so any JSON value, floats
        included, round-trips unchanged.
        """
        item = event.model_dump()
        item["payload"] = json.dumps(event.payload)
        return item

    def _deserialize_event(self, item: dict[str, Any]) -> Event:
        """
        Convert DynamoDB item to Event model.

        Args:
            item: DynamoDB item dict

        Returns:
            Event model with the payload decoded
        """
        data = dict(item)
        data["payload"] = json.loads(data["payload"])
        return Event(**data)

    async def create(self, event: Event) -> Event:
        """
        Create a new event, claiming its idempotency key atomically.

        Args:
            event: Event model to store

        Returns:
            The created Event

        Raises:
            DuplicateEventError: If the idempotency key is already claimed
        """
        claim = {
            "idempotency_key": event.idempotency_key,
            "id": event.id,
            "event_id": event.event_id,
            "created_at": event.created_at,
        }
        async with self.session.client("dynamodb", **get_aws_config()) as client:
            try:
                await client.transact_write_items(
                    TransactItems=[
                        {
                            "Put": {
                                "TableName": self.idempotency_keys.table_name,
                                "Item": marshal_item(claim),
                                "ConditionExpression": "attribute_not_exists(idempotency_key)",
                            }
                        },
                        {
                            "Put": {
                                "TableName": self.table_name,
                                "Item": marshal_item(self._serialize_event(event)),
                                "ConditionExpression": "attribute_not_exists(id)",
                            }
                        },
                    ]
                )
            except ClientError as exc:
                if _is_idempotency_conflict(exc):
                    raise DuplicateEventError(event.idempotency_key) from exc
                raise
        return event

    async def get_by_id(self, id: str) -> Event | None:
        """
        Get event by internal ID.

        Args:
            id: Internal event identifier

        Returns:
            Event if found, None otherwise
        """
        item = await self.get_item({"id": id})
        if item:
            return self._deserialize_event(item)
        return None

    async def get_by_idempotency_key(self, idempotency_key: str) -> Event | None:
        """
        Get the event that claimed an idempotency key.

        Args:
            idempotency_key: Caller-supplied deduplication token

        Returns:
            Event if the key has been claimed, None otherwise
        """
        claim = await self.idempotency_keys.get_item(
            {"idempotency_key": idempotency_key}
        )
        if not claim:
            return None
        return await self.get_by_id(claim["id"])

    async def get_by_public_id(self, event_id: str) -> Event | None:
        """
        Get event by its public identifier using the PublicIdIndex GSI.

        Args:
            event_id: Public event UUID

        Returns:
            Event if found, None otherwise
        """
        items = await self.query(
            IndexName="PublicIdIndex",
            KeyConditionExpression="event_id = :event_id",
            ExpressionAttributeValues={":event_id": event_id},
            Limit=1,
        )
        if items:
            return self._deserialize_event(items[0])
        return None

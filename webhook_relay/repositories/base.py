"""Base repository class with common DynamoDB operations."""

from typing import Any

import aioboto3
from boto3.dynamodb.types import TypeSerializer

from webhook_relay.aws import get_aws_config

_serializer = TypeSerializer()


def marshal_item(item: dict[str, Any]) -> dict[str, Any]:
    """
    Convert a plain item into DynamoDB attribute-value format.

    Needed for low-level client calls (transactions) that bypass the
    resource layer's automatic serialization.

    Args:
        item: Plain item dictionary

    Returns:
        Item with each value wrapped in its DynamoDB type descriptor
    """
    return {key: _serializer.serialize(value) for key, value in item.items()}


class BaseRepository:
    """
    Base repository providing common DynamoDB operations.

    All repository methods are async and use aioboto3 for
    non-blocking database operations.
    """

    def __init__(self, table_name: str, session: aioboto3.Session | None = None) -> None:
        """
        Initialize repository with table name.

        Args:
            table_name: Name of the DynamoDB table
            session: aioboto3 session (creates new if None)
        """
        self.table_name = table_name
        self.session = session or aioboto3.Session()

    async def put_item(
        self,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> None:
        """
        Put item into DynamoDB table.

        Args:
            item: Dictionary representing the item to store
            condition_expression: Optional condition that must hold for the write
        """
        async with self.session.resource("dynamodb", **get_aws_config()) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            params: dict[str, Any] = {"Item": item}
            if condition_expression:
                params["ConditionExpression"] = condition_expression
            await table.put_item(**params)

    async def get_item(self, key: dict[str, Any]) -> dict[str, Any] | None:
        """
        Get item from DynamoDB table by key with a strongly consistent read.

        Args:
            key: Dictionary with partition key and optionally sort key

        Returns:
            Item dictionary or None if not found
        """
        async with self.session.resource("dynamodb", **get_aws_config()) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key=key, ConsistentRead=True)
            return response.get("Item")

    async def update_item(
        self,
        key: dict[str, Any],
        update_expression: str,
        expression_values: dict[str, Any],
        expression_names: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Update item in DynamoDB table.

        Args:
            key: Dictionary with partition key and optionally sort key
            update_expression: DynamoDB update expression
            expression_values: Values for the update expression
            expression_names: Optional attribute name mappings for reserved keywords

        Returns:
            Updated item attributes
        """
        async with self.session.resource("dynamodb", **get_aws_config()) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            update_params = {
                "Key": key,
                "UpdateExpression": update_expression,
                "ExpressionAttributeValues": expression_values,
                "ConditionExpression": " AND ".join(
                    f"attribute_exists({name})" for name in key
                ),
                "ReturnValues": "ALL_NEW",
            }
            if expression_names:
                update_params["ExpressionAttributeNames"] = expression_names

            response = await table.update_item(**update_params)
            return response.get("Attributes", {})

    async def query(self, **query_params: Any) -> list[dict[str, Any]]:
        """
        Query the table or one of its indexes, following pagination.

        Args:
            **query_params: Parameters passed to DynamoDB Query

        Returns:
            All matching items (up to Limit when given)
        """
        limit = query_params.get("Limit")
        items: list[dict[str, Any]] = []

        async with self.session.resource("dynamodb", **get_aws_config()) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            while True:
                response = await table.query(**query_params)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key or (limit is not None and len(items) >= limit):
                    break
                query_params["ExclusiveStartKey"] = last_key

        return items[:limit] if limit is not None else items

"""Script to create DynamoDB tables for LocalStack or AWS."""

import asyncio
from typing import Any

import aioboto3
from botocore.exceptions import ClientError

THROUGHPUT = {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5}


def _index(name: str, hash_key: str, range_key: str | None = None) -> dict[str, Any]:
    """Build a GSI definition projecting all attributes."""
    key_schema = [{"AttributeName": hash_key, "KeyType": "HASH"}]
    if range_key:
        key_schema.append({"AttributeName": range_key, "KeyType": "RANGE"})
    return {
        "IndexName": name,
        "KeySchema": key_schema,
        "Projection": {"ProjectionType": "ALL"},
        "ProvisionedThroughput": THROUGHPUT,
    }


async def create_table(
    dynamodb: Any,
    table_name: str,
    hash_key: str,
    attributes: dict[str, str],
    indexes: list[dict[str, Any]] | None = None,
) -> bool:
    """
    Create a table keyed on a single string attribute.

    Args:
        dynamodb: DynamoDB resource
        table_name: Name of the table
        hash_key: Partition key attribute
        attributes: Attribute name to DynamoDB type for every key attribute
        indexes: Global secondary indexes

    Returns:
        True if the table was created, False if it already existed
    """
    params: dict[str, Any] = {
        "TableName": table_name,
        "KeySchema": [{"AttributeName": hash_key, "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": name, "AttributeType": attr_type}
            for name, attr_type in attributes.items()
        ],
        "BillingMode": "PROVISIONED",
        "ProvisionedThroughput": THROUGHPUT,
    }
    if indexes:
        params["GlobalSecondaryIndexes"] = indexes

    try:
        table = await dynamodb.create_table(**params)
        await table.wait_until_exists()
        print(f"✓ Created table: {table_name}")
        return True
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            print(f"→ Table already exists: {table_name}")
            return False
        raise


async def create_events_table(dynamodb: Any, table_name: str) -> bool:
    """Events keyed by internal id, with a lookup index on the public event_id."""
    return await create_table(
        dynamodb,
        table_name,
        hash_key="id",
        attributes={"id": "S", "event_id": "S"},
        indexes=[_index("PublicIdIndex", "event_id")],
    )


async def create_idempotency_keys_table(dynamodb: Any, table_name: str) -> bool:
    """One item per claimed idempotency key."""
    return await create_table(
        dynamodb,
        table_name,
        hash_key="idempotency_key",
        attributes={"idempotency_key": "S"},
    )


async def create_subscriptions_table(dynamodb: Any, table_name: str) -> bool:
    """Subscriptions with an index on the numeric is_active flag."""
    return await create_table(
        dynamodb,
        table_name,
        hash_key="id",
        attributes={"id": "S", "is_active": "N"},
        indexes=[_index("ActiveIndex", "is_active")],
    )


async def create_delivery_logs_table(dynamodb: Any, table_name: str) -> bool:
    """Delivery logs indexed by event and by status, ordered by creation time."""
    return await create_table(
        dynamodb,
        table_name,
        hash_key="id",
        attributes={"id": "S", "event_id": "S", "status": "S", "created_at": "S"},
        indexes=[
            _index("EventIndex", "event_id", "created_at"),
            _index("StatusIndex", "status", "created_at"),
        ],
    )


async def create_all_tables(session: aioboto3.Session | None = None) -> None:
    """Create all required DynamoDB tables."""
    from webhook_relay.aws import get_aws_config
    from webhook_relay.config import settings

    session = session or aioboto3.Session()
    async with session.resource("dynamodb", **get_aws_config()) as dynamodb:
        await create_events_table(dynamodb, settings.dynamodb_table_events)
        await create_idempotency_keys_table(
            dynamodb, settings.dynamodb_table_idempotency_keys
        )
        await create_subscriptions_table(dynamodb, settings.dynamodb_table_subscriptions)
        await create_delivery_logs_table(dynamodb, settings.dynamodb_table_delivery_logs)


async def main() -> None:
    """Create all tables, printing the target first."""
    from webhook_relay.config import settings

    print("Creating DynamoDB tables...")
    print(f"Region: {settings.aws_region}")
    print(f"Endpoint: {settings.aws_endpoint_url or 'AWS'}")
    print()

    await create_all_tables()

    print()
    print("✓ All tables created successfully!")


if __name__ == "__main__":
    asyncio.run(main())

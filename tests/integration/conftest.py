"""
Fixtures for integration tests against real DynamoDB and SQS APIs.

Tests run against an in-process moto server by default. Set
LOCALSTACK_ENDPOINT_URL (e.g. http://localhost:4566) to use LocalStack
instead. Every test gets its own uniquely named tables and queues.
"""

import os
import uuid
from collections.abc import AsyncGenerator, Generator

import aioboto3
import pytest
from moto.server import ThreadedMotoServer

from infrastructure.dynamodb_tables import create_all_tables
from infrastructure.sqs_queues import create_all_queues
from webhook_relay.aws import get_aws_config
from webhook_relay.config import settings

MOTO_PORT = int(os.getenv("MOTO_PORT", "5123"))


@pytest.fixture(scope="session")
def aws_endpoint_url() -> Generator[str, None, None]:
    """Endpoint serving DynamoDB and SQS for the whole session."""
    localstack = os.getenv("LOCALSTACK_ENDPOINT_URL")
    if localstack:
        yield localstack
        return

    server = ThreadedMotoServer(ip_address="127.0.0.1", port=MOTO_PORT, verbose=False)
    server.start()
    yield f"http://127.0.0.1:{MOTO_PORT}"
    server.stop()


@pytest.fixture
async def aws_resources(
    aws_endpoint_url: str, monkeypatch: pytest.MonkeyPatch
) -> AsyncGenerator[aioboto3.Session, None]:
    """
    Point settings at the test endpoint and create fresh tables and queues.

    Yields:
        The aioboto3 session used to create them
    """
    suffix = uuid.uuid4().hex[:8]
    monkeypatch.setattr(settings, "aws_endpoint_url", aws_endpoint_url)
    monkeypatch.setattr(settings, "aws_access_key_id", "testing")
    monkeypatch.setattr(settings, "aws_secret_access_key", "testing")
    monkeypatch.setattr(settings, "aws_session_token", None)
    monkeypatch.setattr(settings, "aws_region", "us-east-1")
    for name in (
        "dynamodb_table_events",
        "dynamodb_table_idempotency_keys",
        "dynamodb_table_subscriptions",
        "dynamodb_table_delivery_logs",
        "sqs_queue_event_processing",
        "sqs_queue_webhook_delivery",
    ):
        monkeypatch.setattr(settings, name, f"{getattr(settings, name)}-{suffix}")

    session = aioboto3.Session()
    await create_all_tables(session)
    queue_urls = await create_all_queues(session)

    yield session

    async with session.resource("dynamodb", **get_aws_config()) as dynamodb:
        for table_name in (
            settings.dynamodb_table_events,
            settings.dynamodb_table_idempotency_keys,
            settings.dynamodb_table_subscriptions,
            settings.dynamodb_table_delivery_logs,
        ):
            table = await dynamodb.Table(table_name)
            await table.delete()
    async with session.client("sqs", **get_aws_config()) as sqs:
        for queue_url in queue_urls:
            await sqs.delete_queue(QueueUrl=queue_url)

"""Script to create SQS queues for LocalStack or AWS."""

import asyncio
from typing import Any

import aioboto3
from botocore.exceptions import ClientError


async def create_queue(sqs: Any, queue_name: str, visibility_timeout_seconds: int) -> str:
    """
    Create a standard queue, or return the URL of an existing one.

    CreateQueue is idempotent when the attributes match; a queue created
    earlier with different attributes is reported and left as is.

    Args:
        sqs: SQS client
        queue_name: Name of the queue
        visibility_timeout_seconds: Default visibility timeout

    Returns:
        Queue URL
    """
    try:
        response = await sqs.create_queue(
            QueueName=queue_name,
            Attributes={
                "VisibilityTimeout": str(visibility_timeout_seconds),
                "ReceiveMessageWaitTimeSeconds": "20",
                "MessageRetentionPeriod": str(4 * 24 * 3600),
            },
        )
        print(f"✓ Queue ready: {queue_name}")
        return response["QueueUrl"]
    except ClientError as e:
        if e.response["Error"]["Code"] in (
            "QueueAlreadyExists",
            "QueueNameExists",
            "AWS.SimpleQueueService.QueueNameExists",
        ):
            response = await sqs.get_queue_url(QueueName=queue_name)
            print(f"→ Queue already exists with other attributes: {queue_name}")
            return response["QueueUrl"]
        raise


async def create_all_queues(session: aioboto3.Session | None = None) -> list[str]:
    """Create the event-processing and webhook-delivery queues."""
    from webhook_relay.aws import get_aws_config
    from webhook_relay.config import settings

    session = session or aioboto3.Session()
    async with session.client("sqs", **get_aws_config()) as sqs:
        return [
            await create_queue(sqs, name, settings.queue_visibility_timeout_seconds)
            for name in (
                settings.sqs_queue_event_processing,
                settings.sqs_queue_webhook_delivery,
            )
        ]


async def main() -> None:
    """Create all queues, printing the target first."""
    from webhook_relay.config import settings

    print("Creating SQS queues...")
    print(f"Region: {settings.aws_region}")
    print(f"Endpoint: {settings.aws_endpoint_url or 'AWS'}")
    print()

    await create_all_queues()

    print()
    print("✓ All queues created successfully!")


if __name__ == "__main__":
    asyncio.run(main())

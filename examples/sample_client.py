"""
Sample Python client for the Webhook Relay API.

Demonstrates common workflows:
- Submitting events with an idempotency key
- Resubmitting the same key (returns the original event ID)
- Retrying on 503 when the job queue is unavailable
- Triggering a manual retry for a delivery log

Requirements:
    pip install httpx python-dotenv
"""

import asyncio
import os
import sys
import uuid
from typing import Any, Dict

import httpx
from dotenv import load_dotenv


class RelayAPIClient:
    """Async client for the Webhook Relay API."""

    def __init__(self, base_url: str = "http://localhost:8000") -> None:
        """
        Initialize the API client.

        Args:
            base_url: Base URL of the Webhook Relay API
        """
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=30.0,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "RelayAPIClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def send_event(
        self,
        event_type: str,
        source_module: str,
        payload: Any,
        idempotency_key: str,
        max_retries: int = 3,
    ) -> Dict[str, Any]:
        """
        Submit an event, retrying while the relay answers 503 with Retry-After.

        Resubmitting with the same idempotency key is always safe. A 503
        without Retry-After reports an event that was stored but not queued
        for routing; resubmitting would only return it as a duplicate.

        Args:
            event_type: Event type (e.g., "job.created")
            source_module: Emitting module (e.g., "JOBS")
            payload: Event payload
            idempotency_key: Caller-chosen deduplication key
            max_retries: Maximum attempts for 503 responses

        Returns:
            API response with event_id

        Raises:
            httpx.HTTPStatusError: If the request fails after retries
        """
        request_data = {
            "event_type": event_type,
            "source_module": source_module,
            "payload": payload,
            "idempotency_key": idempotency_key,
        }

        for attempt in range(max_retries):
            response = await self.client.post("/events", json=request_data)
            # A 503 without Retry-After means the event was stored but not routed
            if (
                response.status_code == 503
                and "Retry-After" in response.headers
                and attempt < max_retries - 1
            ):
                retry_after = int(response.headers["Retry-After"])
                print(
                    f"Queue unavailable. Retry {attempt + 1}/{max_retries}"
                    f" in {retry_after}s...",
                    file=sys.stderr,
                )
                await asyncio.sleep(retry_after)
                continue

            if response.is_error:
                print(f"Error sending event: {response.status_code}", file=sys.stderr)
                print(f"Response: {response.text}", file=sys.stderr)
            response.raise_for_status()
            return response.json()

        raise RuntimeError("Max retries exceeded")

    async def retry_delivery(self, log_id: str) -> Dict[str, Any]:
        """
        Queue another attempt for a delivery log.

        Args:
            log_id: Delivery log ID (see `manage_subscriptions.py deliveries`)

        Returns:
            API response with the queued attempt number

        Raises:
            httpx.HTTPStatusError: 404 for unknown logs, 400 if not retryable
        """
        response = await self.client.post(f"/deliveries/{log_id}/retry")
        response.raise_for_status()
        return response.json()


async def example_send_event(client: RelayAPIClient) -> str:
    """Example: Submit a job.created event."""
    print("\n=== Example 1: Send Event ===")

    idempotency_key = f"jobs-{uuid.uuid4()}"
    response = await client.send_event(
        event_type="job.created",
        source_module="JOBS",
        payload={"job_id": "J-1001", "title": "Backend Engineer", "salary": 120000.5},
        idempotency_key=idempotency_key,
    )

    print("Event accepted!")
    print(f"  Event ID: {response['event_id']}")
    print(f"  Message: {response['message']}")
    return idempotency_key


async def example_duplicate(client: RelayAPIClient, idempotency_key: str) -> None:
    """Example: Resubmitting a key returns the original event."""
    print("\n=== Example 2: Duplicate Submission ===")

    response = await client.send_event(
        event_type="job.created",
        source_module="JOBS",
        payload={"job_id": "J-1001"},
        idempotency_key=idempotency_key,
    )
    print(f"  Event ID: {response['event_id']} ({response['message']})")


async def example_error_handling(client: RelayAPIClient) -> None:
    """Example: Validation and retry errors."""
    print("\n=== Example 3: Error Handling ===")

    try:
        await client.send_event(
            event_type="job.deleted",
            source_module="JOBS",
            payload={"job_id": "J-1"},
            idempotency_key="bad-type",
        )
    except httpx.HTTPStatusError as e:
        print(f"Validation error (expected): {e.response.status_code}")

    try:
        await client.retry_delivery("nonexistent-log")
    except httpx.HTTPStatusError as e:
        print(f"Not found error (expected): {e.response.status_code}")


async def main() -> None:
    """Run the example workflow against RELAY_API_URL."""
    load_dotenv()
    base_url = os.getenv("RELAY_API_URL", "http://localhost:8000")

    async with RelayAPIClient(base_url=base_url) as client:
        idempotency_key = await example_send_event(client)
        await example_duplicate(client, idempotency_key)
        await example_error_handling(client)

    print("\n=== All examples completed ===")


if __name__ == "__main__":
    asyncio.run(main())

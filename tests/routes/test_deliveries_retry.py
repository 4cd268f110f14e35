"""Tests for POST /deliveries/{log_id}/retry endpoint."""

from unittest.mock import AsyncMock

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from webhook_relay.dependencies import get_manual_retry_service
from webhook_relay.exceptions import (
    InactiveSubscriptionError,
    NotFoundError,
    RetriesExhaustedError,
)
from webhook_relay.main import app
from webhook_relay.services.manual_retry import RetryResult


@pytest.fixture
def service():
    service = AsyncMock()
    app.dependency_overrides[get_manual_retry_service] = lambda: service
    yield service
    app.dependency_overrides.clear()


async def post_retry(log_id: str):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post(f"/deliveries/{log_id}/retry")


@pytest.mark.asyncio
async def test_retry_queued(service):
    service.retry = AsyncMock(
        return_value=RetryResult(delivery_log_id="log-1", delivery_attempt=2, job_id="retry-x")
    )

    response = await post_retry("log-1")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "status": "queued",
        "delivery_log_id": "log-1",
        "delivery_attempt": 2,
        "message": "Delivery attempt 2 queued",
    }
    service.retry.assert_awaited_once_with("log-1")


@pytest.mark.asyncio
async def test_unknown_log_returns_404(service):
    service.retry = AsyncMock(side_effect=NotFoundError("delivery_log", "nope"))

    response = await post_retry("nope")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    data = response.json()
    assert data["error_code"] == "NOT_FOUND"
    assert data["message"] == "Delivery log not found: nope"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error,code",
    [
        (InactiveSubscriptionError("sub-1"), "SUBSCRIPTION_INACTIVE"),
        (RetriesExhaustedError(3), "RETRIES_EXHAUSTED"),
    ],
)
async def test_not_retryable_returns_400(service, error, code):
    service.retry = AsyncMock(side_effect=error)

    response = await post_retry("log-1")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error_code"] == code


@pytest.mark.asyncio
async def test_retry_through_real_service(
    log_repo, event_repo, subscription_repo, delivery_queue, make_event, make_subscription
):
    from webhook_relay.models.delivery_log import DeliveryLog
    from webhook_relay.services.manual_retry import ManualRetryService

    event = await event_repo.create(make_event())
    subscription = await subscription_repo.create(make_subscription(max_retries=3))
    await log_repo.create(
        DeliveryLog(
            id="log-1",
            event_id=event.id,
            subscription_id=subscription.id,
            delivery_attempt=3,
            status="failed",
            created_at="2025-11-11T12:00:00Z",
            updated_at="2025-11-11T12:00:00Z",
        )
    )
    service = ManualRetryService(
        logs=log_repo, events=event_repo, subscriptions=subscription_repo, delivery_queue=delivery_queue
    )
    app.dependency_overrides[get_manual_retry_service] = lambda: service
    try:
        response = await post_retry("log-1")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error_code"] == "RETRIES_EXHAUSTED"
    assert delivery_queue.submitted == []

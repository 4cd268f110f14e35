"""Unit tests for DeliveryLogRepository."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from webhook_relay.models.delivery_log import DeliveryLog
from webhook_relay.repositories.base import BaseRepository
from webhook_relay.repositories.delivery_log_repository import DeliveryLogRepository


@pytest.fixture
def repository() -> DeliveryLogRepository:
    return DeliveryLogRepository(session=MagicMock())


@pytest.fixture
def log() -> DeliveryLog:
    return DeliveryLog(
        id="log-1",
        event_id="evt-1",
        subscription_id="sub-1",
        delivery_attempt=1,
        status="pending",
        created_at="2025-11-11T12:00:00Z",
        updated_at="2025-11-11T12:00:00Z",
    )


@pytest.mark.asyncio
async def test_create_is_conditional_and_omits_empty_fields(repository, log):
    with patch.object(BaseRepository, "put_item", AsyncMock()) as put_item:
        await repository.create(log)

    item = put_item.await_args.args[0]
    assert item["status"] == "pending"
    assert "response_status" not in item
    assert "error" not in item
    assert put_item.await_args.kwargs["condition_expression"] == "attribute_not_exists(id)"


@pytest.mark.asyncio
async def test_save_refreshes_updated_at(repository, log):
    log.status = "success"
    log.response_status = 200

    with patch.object(BaseRepository, "put_item", AsyncMock()) as put_item:
        saved = await repository.save(log)

    item = put_item.await_args.args[0]
    assert item["status"] == "success"
    assert item["response_status"] == 200
    assert saved.updated_at != "2025-11-11T12:00:00Z"
    assert item["updated_at"] == saved.updated_at


@pytest.mark.asyncio
async def test_get_by_id_converts_decimals(repository, log):
    item = {
        **log.model_dump(exclude_none=True),
        "delivery_attempt": Decimal(2),
        "response_status": Decimal(503),
    }
    with patch.object(BaseRepository, "get_item", AsyncMock(return_value=item)):
        result = await repository.get_by_id("log-1")

    assert result.delivery_attempt == 2
    assert result.response_status == 503


@pytest.mark.asyncio
async def test_list_for_event_uses_event_index(repository, log):
    with patch.object(
        BaseRepository, "query", AsyncMock(return_value=[log.model_dump(exclude_none=True)])
    ) as query:
        result = await repository.list_for_event("evt-1")

    assert [entry.id for entry in result] == ["log-1"]
    assert query.await_args.kwargs["IndexName"] == "EventIndex"
    assert query.await_args.kwargs["ScanIndexForward"] is True


@pytest.mark.asyncio
async def test_list_by_status_uses_status_index(repository):
    with patch.object(BaseRepository, "query", AsyncMock(return_value=[])) as query:
        await repository.list_by_status("failed", limit=10)

    params = query.await_args.kwargs
    assert params["IndexName"] == "StatusIndex"
    assert params["ExpressionAttributeNames"] == {"#status": "status"}
    assert params["ExpressionAttributeValues"] == {":status": "failed"}
    assert params["Limit"] == 10

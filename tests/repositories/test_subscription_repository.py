"""Unit tests for SubscriptionRepository."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from webhook_relay.repositories.base import BaseRepository
from webhook_relay.repositories.subscription_repository import SubscriptionRepository


@pytest.fixture
def repository() -> SubscriptionRepository:
    return SubscriptionRepository(session=MagicMock())


def stored_item(subscription, **overrides) -> dict:
    """Subscription as DynamoDB returns it: numbers as Decimal, flag as 0/1."""
    item = {
        **subscription.model_dump(exclude_none=True),
        "secret": subscription.secret,
        "is_active": Decimal(1 if subscription.is_active else 0),
        "max_retries": Decimal(subscription.max_retries),
        "timeout_ms": Decimal(subscription.timeout_ms),
    }
    item.update(overrides)
    return item


@pytest.mark.asyncio
async def test_create_writes_secret_and_numeric_flag(repository, make_subscription):
    subscription = make_subscription(secret="abc123")

    with patch.object(BaseRepository, "put_item", AsyncMock()) as put_item:
        await repository.create(subscription)

    item = put_item.await_args.args[0]
    assert item["secret"] == "abc123"
    assert item["is_active"] == 1
    assert item["event_types"] == ["job.created"]
    assert put_item.await_args.kwargs["condition_expression"] == "attribute_not_exists(id)"


def test_secret_absent_from_model_dump(make_subscription):
    subscription = make_subscription(secret="abc123")
    assert "secret" not in subscription.model_dump()
    assert "abc123" not in subscription.model_dump_json()
    assert "abc123" not in repr(subscription)


@pytest.mark.asyncio
async def test_get_by_id_converts_types(repository, make_subscription):
    subscription = make_subscription(max_retries=7, timeout_ms=2500)

    with patch.object(BaseRepository, "get_item", AsyncMock(return_value=stored_item(subscription))):
        result = await repository.get_by_id(subscription.id)

    assert result.is_active is True
    assert result.max_retries == 7
    assert isinstance(result.max_retries, int)
    assert result.timeout_ms == 2500
    assert result.timeout_seconds == 2.5
    assert result.secret == subscription.secret


@pytest.mark.asyncio
async def test_find_active_for_event_type_queries_index(repository, make_subscription):
    subscription = make_subscription()

    with patch.object(
        BaseRepository, "query", AsyncMock(return_value=[stored_item(subscription)])
    ) as query:
        result = await repository.find_active_for_event_type("job.created")

    assert [sub.id for sub in result] == [subscription.id]
    params = query.await_args.kwargs
    assert params["IndexName"] == "ActiveIndex"
    assert params["FilterExpression"] == "contains(event_types, :event_type)"
    assert params["ExpressionAttributeValues"] == {":active": 1, ":event_type": "job.created"}


@pytest.mark.asyncio
async def test_list_all_includes_inactive(repository, make_subscription):
    active = make_subscription()
    inactive = make_subscription(is_active=False)

    with patch.object(
        BaseRepository,
        "query",
        AsyncMock(side_effect=[[stored_item(active)], [stored_item(inactive)]]),
    ):
        result = await repository.list_all()

    assert [(sub.id, sub.is_active) for sub in result] == [
        (active.id, True),
        (inactive.id, False),
    ]


@pytest.mark.asyncio
async def test_set_active_updates_flag(repository, make_subscription):
    subscription = make_subscription()

    with patch.object(
        BaseRepository,
        "update_item",
        AsyncMock(return_value=stored_item(subscription, is_active=Decimal(0))),
    ) as update_item:
        result = await repository.set_active(subscription.id, False)

    assert result.is_active is False
    key, expression, values = update_item.await_args.args
    assert key == {"id": subscription.id}
    assert values[":active"] == 0


@pytest.mark.asyncio
async def test_set_active_unknown_returns_none(repository):
    error = ClientError(
        {"Error": {"Code": "ConditionalCheckFailedException", "Message": "missing"}},
        "UpdateItem",
    )
    with patch.object(BaseRepository, "update_item", AsyncMock(side_effect=error)):
        assert await repository.set_active("missing", True) is None

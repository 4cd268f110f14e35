"""Unit tests for EventRepository."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from webhook_relay.exceptions import DuplicateEventError
from webhook_relay.repositories.base import BaseRepository
from webhook_relay.repositories.event_repository import EventRepository


def transaction_cancelled(*codes: str) -> ClientError:
    return ClientError(
        {
            "Error": {
                "Code": "TransactionCanceledException",
                "Message": f"Transaction cancelled [{', '.join(codes)}]",
            },
            "CancellationReasons": [{"Code": code} for code in codes],
        },
        "TransactWriteItems",
    )


@pytest.fixture
def dynamodb_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def repository(dynamodb_client) -> EventRepository:
    session = MagicMock()
    session.client.return_value.__aenter__.return_value = dynamodb_client
    return EventRepository(session=session)


@pytest.mark.asyncio
async def test_create_claims_key_and_writes_event_in_one_transaction(
    repository, dynamodb_client, make_event
):
    event = make_event(payload={"salary": 120000.5, "tags": ["a"]}, idempotency_key="k1")

    await repository.create(event)

    dynamodb_client.transact_write_items.assert_awaited_once()
    items = dynamodb_client.transact_write_items.call_args.kwargs["TransactItems"]
    claim, stored = items[0]["Put"], items[1]["Put"]

    assert claim["TableName"] == repository.idempotency_keys.table_name
    assert claim["ConditionExpression"] == "attribute_not_exists(idempotency_key)"
    assert claim["Item"]["idempotency_key"] == {"S": "k1"}
    assert claim["Item"]["id"] == {"S": event.id}

    assert stored["TableName"] == repository.table_name
    assert stored["ConditionExpression"] == "attribute_not_exists(id)"
    assert stored["Item"]["event_id"] == {"S": event.event_id}
    assert json.loads(stored["Item"]["payload"]["S"]) == event.payload


@pytest.mark.asyncio
async def test_create_raises_duplicate_when_claim_fails(repository, dynamodb_client, make_event):
    dynamodb_client.transact_write_items.side_effect = transaction_cancelled(
        "ConditionalCheckFailed", "None"
    )

    with pytest.raises(DuplicateEventError) as exc_info:
        await repository.create(make_event(idempotency_key="k1"))

    assert exc_info.value.idempotency_key == "k1"


@pytest.mark.asyncio
async def test_create_reraises_other_cancellations(repository, dynamodb_client, make_event):
    dynamodb_client.transact_write_items.side_effect = transaction_cancelled(
        "None", "ConditionalCheckFailed"
    )

    with pytest.raises(ClientError):
        await repository.create(make_event())


@pytest.mark.asyncio
async def test_create_reraises_unrelated_errors(repository, dynamodb_client, make_event):
    dynamodb_client.transact_write_items.side_effect = ClientError(
        {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
        "TransactWriteItems",
    )

    with pytest.raises(ClientError):
        await repository.create(make_event())


@pytest.mark.asyncio
async def test_get_by_id_decodes_payload(repository, make_event):
    event = make_event(payload=[1, {"b": 2.5}])
    item = {**event.model_dump(), "payload": json.dumps(event.payload)}

    with patch.object(BaseRepository, "get_item", AsyncMock(return_value=item)) as get_item:
        result = await repository.get_by_id(event.id)

    get_item.assert_awaited_once_with({"id": event.id})
    assert result == event


@pytest.mark.asyncio
async def test_get_by_id_missing(repository):
    with patch.object(BaseRepository, "get_item", AsyncMock(return_value=None)):
        assert await repository.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_get_by_idempotency_key_follows_claim(repository, make_event):
    event = make_event(idempotency_key="k1")
    item = {**event.model_dump(), "payload": json.dumps(event.payload)}
    claim = {"idempotency_key": "k1", "id": event.id}

    with patch.object(BaseRepository, "get_item", AsyncMock(side_effect=[claim, item])) as get_item:
        result = await repository.get_by_idempotency_key("k1")

    assert result.event_id == event.event_id
    assert get_item.await_args_list[0].args == ({"idempotency_key": "k1"},)
    assert get_item.await_args_list[1].args == ({"id": event.id},)


@pytest.mark.asyncio
async def test_get_by_idempotency_key_unclaimed(repository):
    with patch.object(BaseRepository, "get_item", AsyncMock(return_value=None)):
        assert await repository.get_by_idempotency_key("free") is None


@pytest.mark.asyncio
async def test_get_by_public_id_uses_index(repository, make_event):
    event = make_event()
    item = {**event.model_dump(), "payload": json.dumps(event.payload)}

    with patch.object(BaseRepository, "query", AsyncMock(return_value=[item])) as query:
        result = await repository.get_by_public_id(event.event_id)

    assert result.id == event.id
    assert query.await_args.kwargs["IndexName"] == "PublicIdIndex"
    assert query.await_args.kwargs["ExpressionAttributeValues"] == {":event_id": event.event_id}

#!/usr/bin/env python3
"""
CLI for webhook subscription management.

Provides commands to create, list, activate and deactivate subscriptions,
inspect delivery logs for an event, and retry a logged delivery.
"""

import argparse
import asyncio
import sys
import uuid
from typing import List, Optional

from pydantic import ValidationError

from webhook_relay.exceptions import RelayError
from webhook_relay.logging.config import configure_logging
from webhook_relay.models.event import EventType
from webhook_relay.models.subscription import Subscription
from webhook_relay.repositories.delivery_log_repository import DeliveryLogRepository
from webhook_relay.repositories.event_repository import EventRepository
from webhook_relay.repositories.subscription_repository import SubscriptionRepository
from webhook_relay.services.manual_retry import ManualRetryService
from webhook_relay.services.signer import HmacSigner
from webhook_relay.utils.timestamps import now_iso


async def cmd_create(
    name: str,
    webhook_url: str,
    event_types: List[str],
    description: Optional[str] = None,
    max_retries: int = 3,
    timeout_ms: int = 5000,
    repo: Optional[SubscriptionRepository] = None,
) -> Subscription:
    """
    Create a subscription with a freshly generated secret.

    The secret is printed once and cannot be retrieved later.

    Args:
        name: Human-readable name
        webhook_url: Delivery endpoint
        event_types: Event types to receive
        description: Optional description
        max_retries: Maximum delivery attempts per event
        timeout_ms: Outbound request timeout
        repo: SubscriptionRepository (creates new if None)
    """
    now = now_iso()
    try:
        subscription = Subscription(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            webhook_url=webhook_url,
            event_types=event_types,
            secret=HmacSigner.generate_secret(),
            is_active=True,
            max_retries=max_retries,
            timeout_ms=timeout_ms,
            created_at=now,
            updated_at=now,
        )
    except ValidationError as exc:
        print("✗ Error: invalid subscription")
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            print(f"   {field}: {error['msg']}")
        sys.exit(1)

    repo = repo or SubscriptionRepository()
    await repo.create(subscription)

    print("✓ Subscription created successfully")
    print(f"\nSubscription ID: {subscription.id}")
    print(f"Secret: {subscription.secret}")
    print("\n⚠️  IMPORTANT: Save this secret now!")
    print("   It will not be shown again.")
    print(f"\nName: {subscription.name}")
    print(f"Webhook URL: {subscription.webhook_url}")
    print(f"Event Types: {', '.join(subscription.event_types)}")
    print(f"Max Retries: {subscription.max_retries}")
    print(f"Timeout: {subscription.timeout_ms}ms")
    return subscription


async def cmd_list(repo: Optional[SubscriptionRepository] = None) -> None:
    """List all subscriptions without their secrets."""
    repo = repo or SubscriptionRepository()
    subscriptions = await repo.list_all()

    if not subscriptions:
        print("No subscriptions found.")
        return

    print(
        f"\n{'Subscription ID':<38} {'Active':<8} {'Retries':<8}"
        f" {'Name':<25} {'Event Types'}"
    )
    print("-" * 120)

    for subscription in subscriptions:
        name = subscription.name
        if len(name) > 22:
            name = name[:22] + "..."
        print(
            f"{subscription.id:<38} {'yes' if subscription.is_active else 'no':<8}"
            f" {subscription.max_retries:<8} {name:<25}"
            f" {', '.join(subscription.event_types)}"
        )

    print(f"\nTotal: {len(subscriptions)} subscriptions")


async def cmd_set_active(
    subscription_id: str,
    is_active: bool,
    repo: Optional[SubscriptionRepository] = None,
) -> None:
    """
    Activate or deactivate a subscription.

    Args:
        subscription_id: Subscription to update
        is_active: New activation state
        repo: SubscriptionRepository (creates new if None)
    """
    repo = repo or SubscriptionRepository()
    subscription = await repo.set_active(subscription_id, is_active)
    if subscription is None:
        print(f"✗ Error: subscription {subscription_id} not found")
        sys.exit(1)

    state = "activated" if is_active else "deactivated"
    print(f"✓ Subscription {subscription_id} has been {state}")


async def cmd_deliveries(
    event_id: str,
    events: Optional[EventRepository] = None,
    logs: Optional[DeliveryLogRepository] = None,
) -> None:
    """
    Show delivery attempts for an event.

    Args:
        event_id: Public or internal event ID
        events: EventRepository (creates new if None)
        logs: DeliveryLogRepository (creates new if None)
    """
    events = events or EventRepository()
    logs = logs or DeliveryLogRepository()

    event = await events.get_by_public_id(event_id) or await events.get_by_id(event_id)
    if event is None:
        print(f"✗ Error: event {event_id} not found")
        sys.exit(1)

    delivery_logs = await logs.list_for_event(event.id)
    print(f"\nEvent {event.event_id} ({event.event_type})")

    if not delivery_logs:
        print("No delivery attempts recorded.")
        return

    print(
        f"\n{'Delivery Log ID':<38} {'Subscription ID':<38} {'Attempt':<8}"
        f" {'Status':<10} {'HTTP':<6} {'Error'}"
    )
    print("-" * 140)

    for log in delivery_logs:
        error = log.error or ""
        if len(error) > 40:
            error = error[:40] + "..."
        print(
            f"{log.id:<38} {log.subscription_id:<38} {log.delivery_attempt:<8}"
            f" {log.status:<10} {log.response_status or '-':<6} {error}"
        )

    print(f"\nTotal: {len(delivery_logs)} delivery attempts")


async def cmd_retry(log_id: str, service: Optional[ManualRetryService] = None) -> None:
    """
    Queue another attempt for a logged delivery.

    Args:
        log_id: DeliveryLog identifier
        service: ManualRetryService (creates new if None)
    """
    service = service or ManualRetryService()
    try:
        result = await service.retry(log_id)
    except RelayError as exc:
        print(f"✗ Error: {exc.message}")
        sys.exit(1)

    print(f"✓ Delivery attempt {result.delivery_attempt} queued")
    print(f"   Job ID: {result.job_id}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        description="Manage webhook subscriptions for the Webhook Relay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    create_parser = subparsers.add_parser("create", help="Create a subscription")
    create_parser.add_argument("name", type=str, help="Subscription name")
    create_parser.add_argument("webhook_url", type=str, help="Delivery endpoint")
    create_parser.add_argument(
        "--event-types",
        type=str,
        nargs="+",
        required=True,
        choices=[event_type.value for event_type in EventType],
        help="Event types to receive (space-separated)",
    )
    create_parser.add_argument("--description", type=str, help="Description")
    create_parser.add_argument(
        "--max-retries",
        type=int,
        default=3,
        help="Maximum delivery attempts per event (1-10, default: 3)",
    )
    create_parser.add_argument(
        "--timeout-ms",
        type=int,
        default=5000,
        help="Request timeout in milliseconds (1000-30000, default: 5000)",
    )

    subparsers.add_parser("list", help="List all subscriptions")

    activate_parser = subparsers.add_parser("activate", help="Activate a subscription")
    activate_parser.add_argument("subscription_id", type=str)

    deactivate_parser = subparsers.add_parser(
        "deactivate", help="Deactivate a subscription"
    )
    deactivate_parser.add_argument("subscription_id", type=str)

    deliveries_parser = subparsers.add_parser(
        "deliveries", help="Show delivery attempts for an event"
    )
    deliveries_parser.add_argument("event_id", type=str, help="Public or internal event ID")

    retry_parser = subparsers.add_parser("retry", help="Retry a logged delivery")
    retry_parser.add_argument("log_id", type=str, help="Delivery log ID")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging("WARNING")

    if args.command == "create":
        asyncio.run(
            cmd_create(
                args.name,
                args.webhook_url,
                args.event_types,
                description=args.description,
                max_retries=args.max_retries,
                timeout_ms=args.timeout_ms,
            )
        )
    elif args.command == "list":
        asyncio.run(cmd_list())
    elif args.command in ("activate", "deactivate"):
        asyncio.run(cmd_set_active(args.subscription_id, args.command == "activate"))
    elif args.command == "deliveries":
        asyncio.run(cmd_deliveries(args.event_id))
    elif args.command == "retry":
        asyncio.run(cmd_retry(args.log_id))


if __name__ == "__main__":
    main()

"""
Worker process entry point.

Usage:
    python -m webhook_relay.workers.run router
    python -m webhook_relay.workers.run delivery --concurrency 20
"""

import argparse
import asyncio
import functools
import signal
import sys

from webhook_relay.config import settings
from webhook_relay.logging.config import configure_logging, get_logger
from webhook_relay.queue import event_processing_queue, webhook_delivery_queue
from webhook_relay.repositories.delivery_log_repository import DeliveryLogRepository
from webhook_relay.repositories.event_repository import EventRepository
from webhook_relay.repositories.subscription_repository import SubscriptionRepository
from webhook_relay.services.delivery import DeliveryWorker
from webhook_relay.services.router import EventRouter
from webhook_relay.workers.pool import WorkerPool

logger = get_logger(__name__)

ROLES = ("router", "delivery")


def install_signal_handlers(pool: WorkerPool) -> None:
    """Stop the pool on SIGINT/SIGTERM."""
    loop = asyncio.get_running_loop()

    def handle_shutdown(sig: signal.Signals) -> None:
        logger.info("Received shutdown signal", extra={"context": {"signal": sig.name}})
        pool.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, functools.partial(handle_shutdown, sig))
        except NotImplementedError:
            logger.warning(
                "Signal handling not supported on this platform",
                extra={"context": {"signal": sig.name}},
            )


async def run_router(concurrency: int) -> None:
    """Consume routing jobs until stopped."""
    router = EventRouter(
        events=EventRepository(),
        subscriptions=SubscriptionRepository(),
        delivery_queue=webhook_delivery_queue(),
    )
    pool = WorkerPool(
        event_processing_queue(),
        router.handle,
        concurrency=concurrency,
        wait_seconds=settings.queue_poll_wait_seconds,
    )
    install_signal_handlers(pool)
    await pool.run()


async def run_delivery(concurrency: int) -> None:
    """Consume delivery jobs until stopped."""
    delivery_queue = webhook_delivery_queue()
    worker = DeliveryWorker(
        events=EventRepository(),
        subscriptions=SubscriptionRepository(),
        logs=DeliveryLogRepository(),
        delivery_queue=delivery_queue,
    )
    pool = WorkerPool(
        delivery_queue,
        worker.handle,
        concurrency=concurrency,
        wait_seconds=settings.queue_poll_wait_seconds,
    )
    install_signal_handlers(pool)
    try:
        await pool.run()
    finally:
        await worker.close()


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and run the selected worker."""
    parser = argparse.ArgumentParser(description="Run a webhook relay worker")
    parser.add_argument("role", choices=ROLES, help="Queue consumer to run")
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Maximum jobs processed at once (defaults from settings)",
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    if args.role == "router":
        concurrency = args.concurrency or settings.router_concurrency
        coroutine = run_router(concurrency)
    else:
        concurrency = args.concurrency or settings.delivery_concurrency
        coroutine = run_delivery(concurrency)

    logger.info(
        "Starting worker",
        extra={"context": {"role": args.role, "concurrency": concurrency}},
    )
    asyncio.run(coroutine)
    return 0


if __name__ == "__main__":
    sys.exit(main())

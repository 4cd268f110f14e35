"""Job queue adapter and queue construction."""

from webhook_relay.config import settings
from webhook_relay.queue.job_queue import Job, JobPolicy, JobQueue, ReceivedJob


def event_processing_queue() -> JobQueue:
    """Queue carrying routing jobs (fixed backoff)."""
    return JobQueue(
        settings.sqs_queue_event_processing,
        policy=JobPolicy(
            max_attempts=settings.routing_job_max_attempts,
            backoff_ms=settings.routing_job_backoff_ms,
        ),
        visibility_timeout_seconds=settings.queue_visibility_timeout_seconds,
    )


def webhook_delivery_queue() -> JobQueue:
    """Queue carrying delivery jobs (exponential backoff)."""
    return JobQueue(
        settings.sqs_queue_webhook_delivery,
        policy=JobPolicy(
            max_attempts=settings.delivery_job_max_attempts,
            backoff_ms=settings.delivery_job_backoff_ms,
            exponential=True,
        ),
        visibility_timeout_seconds=settings.queue_visibility_timeout_seconds,
    )


__all__ = [
    "Job",
    "JobPolicy",
    "JobQueue",
    "ReceivedJob",
    "event_processing_queue",
    "webhook_delivery_queue",
]

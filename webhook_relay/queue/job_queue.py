"""Durable job queue backed by Amazon SQS."""

import json
import math
from dataclasses import dataclass, field
from typing import Any

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from webhook_relay.aws import get_aws_config
from webhook_relay.exceptions import QueueError
from webhook_relay.logging.config import get_logger

logger = get_logger(__name__)

# SQS limits
MAX_BATCH_SIZE = 10
MAX_DELAY_SECONDS = 900
MAX_RECEIVE_MESSAGES = 10


@dataclass
class Job:
    """A job to submit: name, payload and an identity used for tracing."""

    name: str
    data: dict[str, Any]
    job_id: str
    delay_ms: int = 0


@dataclass
class ReceivedJob:
    """A job handed to a worker, with what is needed to ack or release it."""

    name: str
    data: dict[str, Any]
    job_id: str
    receipt_handle: str
    attempts_made: int = 1
    message_id: str | None = None


@dataclass(frozen=True)
class JobPolicy:
    """
    Redelivery policy for jobs whose handler failed unexpectedly.

    Attributes:
        max_attempts: Receives allowed before the job is dropped
        backoff_ms: Base delay before redelivery
        exponential: Double the delay on each further attempt
    """

    max_attempts: int = 3
    backoff_ms: int = 2000
    exponential: bool = False

    def delay_ms(self, attempts_made: int) -> int:
        """Delay before the next redelivery after ``attempts_made`` receives."""
        if not self.exponential:
            return self.backoff_ms
        return self.backoff_ms * 2 ** max(attempts_made - 1, 0)


def _delay_seconds(delay_ms: int) -> int:
    """Round a millisecond delay up to whole seconds within the SQS limit."""
    return min(max(math.ceil(delay_ms / 1000), 0), MAX_DELAY_SECONDS)


def _encode(job: Job) -> str:
    return json.dumps({"name": job.name, "job_id": job.job_id, "data": job.data})


class JobQueue:
    """
    Named SQS queue carrying JSON job messages.

    Delivery is at-least-once: a received job stays in flight until it is
    acked, and reappears after the visibility timeout (or the delay given
    to ``release``) otherwise.
    """

    def __init__(
        self,
        queue_name: str,
        policy: JobPolicy | None = None,
        visibility_timeout_seconds: int = 60,
        session: aioboto3.Session | None = None,
    ) -> None:
        """
        Initialize JobQueue.

        Args:
            queue_name: SQS queue name, resolved to a URL on first use
            policy: Redelivery policy applied by worker pools
            visibility_timeout_seconds: In-flight time granted per receive
            session: aioboto3 session (creates new if None)
        """
        self.queue_name = queue_name
        self.policy = policy or JobPolicy()
        self.visibility_timeout_seconds = visibility_timeout_seconds
        self.session = session or aioboto3.Session()
        self._queue_url: str | None = None

    async def _get_queue_url(self, sqs: Any) -> str:
        if self._queue_url is None:
            response = await sqs.get_queue_url(QueueName=self.queue_name)
            self._queue_url = response["QueueUrl"]
        return self._queue_url

    async def submit(
        self,
        name: str,
        data: dict[str, Any],
        job_id: str,
        delay_ms: int = 0,
    ) -> str:
        """
        Submit one job.

        Args:
            name: Job name
            data: JSON-serializable job payload
            job_id: Job identity carried in the message
            delay_ms: Minimum time before the job becomes visible

        Returns:
            The job ID

        Raises:
            QueueError: If SQS rejects the message
        """
        job = Job(name=name, data=data, job_id=job_id, delay_ms=delay_ms)
        try:
            async with self.session.client("sqs", **get_aws_config()) as sqs:
                await sqs.send_message(
                    QueueUrl=await self._get_queue_url(sqs),
                    MessageBody=_encode(job),
                    DelaySeconds=_delay_seconds(delay_ms),
                )
        except (BotoCoreError, ClientError) as exc:
            raise QueueError(
                message=f"Failed to enqueue job {job_id}: {exc}",
                queue=self.queue_name,
            ) from exc

        logger.debug(
            "Job submitted",
            extra={
                "context": {
                    "queue": self.queue_name,
                    "job_name": name,
                    "job_id": job_id,
                    "delay_ms": delay_ms,
                }
            },
        )
        return job_id

    async def submit_batch(self, jobs: list[Job]) -> list[str]:
        """
        Submit several jobs using SQS batch requests.

        Each request carries up to ten jobs and is accepted or rejected as
        a whole; larger lists are split across requests.

        Args:
            jobs: Jobs to submit

        Returns:
            IDs of the submitted jobs

        Raises:
            QueueError: If any job is rejected
        """
        if not jobs:
            return []

        try:
            async with self.session.client("sqs", **get_aws_config()) as sqs:
                queue_url = await self._get_queue_url(sqs)
                for start in range(0, len(jobs), MAX_BATCH_SIZE):
                    chunk = jobs[start : start + MAX_BATCH_SIZE]
                    response = await sqs.send_message_batch(
                        QueueUrl=queue_url,
                        Entries=[
                            {
                                "Id": str(index),
                                "MessageBody": _encode(job),
                                "DelaySeconds": _delay_seconds(job.delay_ms),
                            }
                            for index, job in enumerate(chunk)
                        ],
                    )
                    failed = response.get("Failed") or []
                    if failed:
                        failed_ids = [chunk[int(entry["Id"])].job_id for entry in failed]
                        raise QueueError(
                            message=f"{len(failed)} of {len(chunk)} jobs rejected",
                            queue=self.queue_name,
                            details={"failed_job_ids": failed_ids},
                        )
        except (BotoCoreError, ClientError) as exc:
            raise QueueError(
                message=f"Failed to enqueue batch: {exc}",
                queue=self.queue_name,
            ) from exc

        return [job.job_id for job in jobs]

    async def receive(
        self, max_jobs: int = MAX_RECEIVE_MESSAGES, wait_seconds: int = 20
    ) -> list[ReceivedJob]:
        """
        Long-poll for jobs.

        Args:
            max_jobs: Upper bound on jobs returned (1-10)
            wait_seconds: Long-poll wait time

        Returns:
            Received jobs; malformed messages are logged and deleted
        """
        async with self.session.client("sqs", **get_aws_config()) as sqs:
            queue_url = await self._get_queue_url(sqs)
            response = await sqs.receive_message(
                QueueUrl=queue_url,
                MaxNumberOfMessages=min(max(max_jobs, 1), MAX_RECEIVE_MESSAGES),
                WaitTimeSeconds=wait_seconds,
                VisibilityTimeout=self.visibility_timeout_seconds,
                AttributeNames=["ApproximateReceiveCount"],
            )

            jobs: list[ReceivedJob] = []
            for message in response.get("Messages", []):
                try:
                    body = json.loads(message["Body"])
                    if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
                        raise TypeError("job data is not a JSON object")
                    jobs.append(
                        ReceivedJob(
                            name=body["name"],
                            data=body["data"],
                            job_id=body["job_id"],
                            receipt_handle=message["ReceiptHandle"],
                            attempts_made=int(
                                message.get("Attributes", {}).get(
                                    "ApproximateReceiveCount", 1
                                )
                            ),
                            message_id=message.get("MessageId"),
                        )
                    )
                except (ValueError, KeyError, TypeError):
                    logger.error(
                        "Discarding malformed job message",
                        extra={
                            "context": {
                                "queue": self.queue_name,
                                "message_id": message.get("MessageId"),
                            }
                        },
                    )
                    await sqs.delete_message(
                        QueueUrl=queue_url, ReceiptHandle=message["ReceiptHandle"]
                    )
            return jobs

    async def ack(self, job: ReceivedJob) -> None:
        """
        Remove a finished job from the queue.

        Args:
            job: Job returned by ``receive``
        """
        async with self.session.client("sqs", **get_aws_config()) as sqs:
            await sqs.delete_message(
                QueueUrl=await self._get_queue_url(sqs),
                ReceiptHandle=job.receipt_handle,
            )

    async def release(self, job: ReceivedJob, delay_ms: int = 0) -> None:
        """
        Return a job to the queue for redelivery after a delay.

        Args:
            job: Job returned by ``receive``
            delay_ms: Time before the job becomes visible again
        """
        async with self.session.client("sqs", **get_aws_config()) as sqs:
            await sqs.change_message_visibility(
                QueueUrl=await self._get_queue_url(sqs),
                ReceiptHandle=job.receipt_handle,
                VisibilityTimeout=_delay_seconds(delay_ms),
            )

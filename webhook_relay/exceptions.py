"""Custom exception classes for the webhook relay."""

from typing import Any


class RelayError(Exception):
    """Base exception for the webhook relay."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            error_code: Machine-readable error code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class InvalidInputError(RelayError):
    """Raised when an ingestion request is malformed (400)."""

    def __init__(
        self,
        message: str = "Invalid event data",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_INPUT",
            details=details,
        )


class DuplicateEventError(RelayError):
    """
    Raised when an idempotency key has already been claimed.

    The ingestion gate converts this into a successful response carrying
    the existing event ID.
    """

    def __init__(
        self,
        idempotency_key: str,
        message: str = "Event already recorded for idempotency key",
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        error_details["idempotency_key"] = idempotency_key
        super().__init__(
            message=message,
            status_code=409,
            error_code="DUPLICATE_EVENT",
            details=error_details,
        )
        self.idempotency_key = idempotency_key


class NotFoundError(RelayError):
    """Raised when a referenced record is missing (404)."""

    def __init__(
        self,
        resource: str,
        resource_id: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize NotFoundError.

        Args:
            resource: Kind of record ("event", "subscription", "delivery_log")
            resource_id: Identifier that was looked up
            message: Error message (derived from resource when omitted)
            details: Additional error details
        """
        error_details = details or {}
        error_details["resource"] = resource
        error_details["resource_id"] = resource_id
        super().__init__(
            message=message or f"{resource.replace('_', ' ').capitalize()} not found: {resource_id}",
            status_code=404,
            error_code="NOT_FOUND",
            details=error_details,
        )
        self.resource = resource
        self.resource_id = resource_id


class InactiveSubscriptionError(RelayError):
    """Raised when a delivery targets a deactivated subscription."""

    def __init__(
        self,
        subscription_id: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        error_details["subscription_id"] = subscription_id
        super().__init__(
            message=message or f"Subscription is inactive: {subscription_id}",
            status_code=400,
            error_code="SUBSCRIPTION_INACTIVE",
            details=error_details,
        )
        self.subscription_id = subscription_id


class DeliveryFailureError(RelayError):
    """Raised when a webhook attempt failed and the next attempt is scheduled."""

    def __init__(
        self,
        message: str,
        attempt: int,
        retry_delay_ms: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        error_details["attempt"] = attempt
        error_details["retry_delay_ms"] = retry_delay_ms
        super().__init__(
            message=message,
            status_code=502,
            error_code="DELIVERY_FAILED",
            details=error_details,
        )
        self.attempt = attempt
        self.retry_delay_ms = retry_delay_ms


class RetriesExhaustedError(RelayError):
    """Raised when no further delivery attempts are permitted."""

    def __init__(
        self,
        max_retries: int,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        error_details["max_retries"] = max_retries
        super().__init__(
            message=message or f"Maximum retry attempts exceeded ({max_retries})",
            status_code=400,
            error_code="RETRIES_EXHAUSTED",
            details=error_details,
        )
        self.max_retries = max_retries


class QueueError(RelayError):
    """Raised when the job queue rejects a submission (503)."""

    def __init__(
        self,
        message: str = "Job queue temporarily unavailable",
        queue: str | None = None,
        retry_after: int | None = 60,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        if retry_after is not None:
            error_details["retry_after"] = retry_after
        if queue:
            error_details["queue"] = queue
        super().__init__(
            message=message,
            status_code=503,
            error_code="SERVICE_UNAVAILABLE",
            details=error_details,
        )


class RequestTooLargeError(RelayError):
    """Raised when request payload exceeds size limit (413)."""

    def __init__(
        self,
        message: str = "Request payload too large",
        max_size: str = "10MB",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize RequestTooLargeError.

        Args:
            message: Error message
            max_size: Maximum allowed size
            details: Additional error details
        """
        error_details = details or {}
        error_details["max_size"] = max_size
        super().__init__(
            message=message,
            status_code=413,
            error_code="PAYLOAD_TOO_LARGE",
            details=error_details,
        )

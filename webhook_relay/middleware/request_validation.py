"""Request validation middleware."""

import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from webhook_relay.config import settings
from webhook_relay.exceptions import RequestTooLargeError
from webhook_relay.handlers.exception_handler import create_error_response
from webhook_relay.logging.config import get_logger

logger = get_logger(__name__)


def _format_kb(size: int) -> str:
    return f"{size / 1024:.0f}KB"


class RequestSizeValidationMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests whose declared Content-Length exceeds the limit.

    Oversized requests get a 413 before the body is read. Requests with a
    missing or unparsable Content-Length are passed through; the payload
    size check on the event schema still applies.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Validate request size and process request.

        Args:
            request: The incoming request
            call_next: The next middleware/handler in the chain

        Returns:
            The handler's response, or a 413 error response
        """
        # Set early so error responses carry it
        correlation_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.correlation_id = correlation_id

        content_length = request.headers.get("content-length")
        max_size = settings.max_request_size_bytes

        if content_length and content_length.isdigit() and int(content_length) > max_size:
            size = int(content_length)
            exc = RequestTooLargeError(
                message=f"Request size {size / 1024:.1f}KB exceeds maximum {_format_kb(max_size)}",
                max_size=_format_kb(max_size),
                details={"request_size": f"{size / 1024:.1f}KB"},
            )
            logger.warning(
                exc.message,
                extra={
                    "correlation_id": correlation_id,
                    "context": {"path": request.url.path, "request_size": size},
                },
            )
            response = create_error_response(
                error_code=exc.error_code,
                message=exc.message,
                status_code=exc.status_code,
                details=exc.details,
                correlation_id=correlation_id,
            )
            response.headers["X-Request-ID"] = correlation_id
            return response

        return await call_next(request)

"""Middleware components for request processing."""

from webhook_relay.middleware.logging import LoggingMiddleware
from webhook_relay.middleware.request_validation import RequestSizeValidationMiddleware

__all__ = ["LoggingMiddleware", "RequestSizeValidationMiddleware"]

"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from webhook_relay.config import settings
from webhook_relay.exceptions import RelayError
from webhook_relay.handlers.exception_handler import (
    generic_exception_handler,
    relay_exception_handler,
    validation_exception_handler,
)
from webhook_relay.logging.config import configure_logging
from webhook_relay.middleware.logging import LoggingMiddleware
from webhook_relay.middleware.request_validation import RequestSizeValidationMiddleware
from webhook_relay.routes import deliveries, events

# Configure logging before creating the app
configure_logging()

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="""
## Webhook Relay API

Accepts domain events from internal modules and delivers them to the
webhooks subscribed to each event type.

### Event Lifecycle

1. **Ingest**: POST /events → stored once per `idempotency_key`, receives `event_id`
2. **Route**: matched against active subscriptions for the event type
3. **Deliver**: signed POST to each subscriber, retried with exponential
   backoff (1s, 2s, 4s, ... capped at 30s) up to the subscription's `max_retries`
4. **Retry**: POST /deliveries/{log_id}/retry queues one more attempt

### Verifying Deliveries

Each webhook carries `X-Relay-Signature`, the hex HMAC-SHA256 of the request
body under the subscription secret. The body is the payload serialized as
compact JSON with sorted keys.
""",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Register middleware (order matters: last added = outermost layer)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestSizeValidationMiddleware)

# Register exception handlers
app.add_exception_handler(RelayError, relay_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Register routers
app.include_router(events.router)
app.include_router(deliveries.router)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """
    Root endpoint with API information.

    Returns:
        Dict with welcome message and docs link
    """
    return {
        "message": f"Welcome to {settings.api_title}",
        "version": settings.api_version,
        "docs": "/docs",
    }

"""Subscription model for DynamoDB."""

from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from webhook_relay.models.event import EventType


class Subscription(BaseModel):
    """
    Webhook subscription: a delivery target and the event types it wants.

    The secret is excluded from every serialized view of the model; the
    repository writes it explicitly and the delivery worker reads it from
    the attribute.

    Attributes:
        id: Subscription identifier (UUID)
        name: Human-readable name
        description: Optional purpose description
        webhook_url: http(s) endpoint receiving deliveries
        event_types: Event types this subscription receives (non-empty)
        secret: HMAC signing secret (write-once)
        is_active: Inactive subscriptions receive nothing
        max_retries: Maximum delivery attempts per event (1-10)
        timeout_ms: Outbound request timeout in milliseconds (1000-30000)
        created_at: ISO 8601 creation timestamp
        updated_at: ISO 8601 update timestamp
    """

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(..., description="Subscription identifier (UUID)")
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    webhook_url: str = Field(..., description="Delivery endpoint")
    event_types: list[EventType] = Field(..., min_length=1)
    secret: str = Field(..., exclude=True, repr=False)
    is_active: bool = True
    max_retries: int = Field(default=3, ge=1, le=10)
    timeout_ms: int = Field(default=5000, ge=1000, le=30000)
    created_at: str
    updated_at: str

    @field_validator("name", "webhook_url", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        """Trim surrounding whitespace from free-text fields."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: str) -> str:
        """
        Require an absolute http or https URL.

        Raises:
            ValueError: If the URL has another scheme or no host
        """
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid webhook URL format")
        return v

    @field_validator("event_types")
    @classmethod
    def dedupe_event_types(cls, v: list[str]) -> list[str]:
        """Drop repeated event types, keeping first-seen order."""
        return list(dict.fromkeys(v))

    @property
    def timeout_seconds(self) -> float:
        """Outbound request timeout in seconds."""
        return self.timeout_ms / 1000

"""Configuration management using Pydantic Settings."""

import os

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Only load .env file in development (not Lambda/production)
        env_file=".env" if os.getenv("AWS_EXECUTION_ENV") is None else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # AWS Configuration
    aws_region: str = "us-east-2"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_session_token: str | None = None  # Required for temporary credentials
    aws_endpoint_url: str | None = None  # LocalStack endpoint for DynamoDB and SQS

    @field_validator(
        "aws_access_key_id",
        "aws_secret_access_key",
        "aws_session_token",
        "aws_endpoint_url",
        mode="before",
    )
    @classmethod
    def convert_empty_string_to_none(cls, v):
        """Convert empty strings to None so boto3 can use IAM role in Lambda."""
        if v is None:
            return None
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    # DynamoDB Configuration
    dynamodb_table_events: str = "webhook-relay-events"
    dynamodb_table_idempotency_keys: str = "webhook-relay-idempotency-keys"
    dynamodb_table_subscriptions: str = "webhook-relay-subscriptions"
    dynamodb_table_delivery_logs: str = "webhook-relay-delivery-logs"

    # SQS Configuration
    sqs_queue_event_processing: str = "event-processing"
    sqs_queue_webhook_delivery: str = "webhook-delivery"
    queue_poll_wait_seconds: int = 20
    queue_visibility_timeout_seconds: int = 60

    # Application Configuration
    log_level: str = "INFO"
    api_title: str = "Webhook Relay API"
    api_version: str = "1.0.0"

    # API Limits
    max_request_size_bytes: int = 10 * 1024 * 1024  # 10MB
    max_payload_size_bytes: int = 256 * 1024  # 256KB

    # Worker pools
    router_concurrency: int = 5
    delivery_concurrency: int = 10

    # Job policies for infrastructure failures (store/queue I/O)
    routing_job_max_attempts: int = 3
    routing_job_backoff_ms: int = 2000
    delivery_job_max_attempts: int = 5
    delivery_job_backoff_ms: int = 1000

    # Webhook delivery
    retry_base_delay_ms: int = 1000
    retry_max_delay_ms: int = 30000
    response_body_max_chars: int = 5000
    error_max_chars: int = 2000
    webhook_max_redirects: int = 2
    webhook_user_agent: str = "Webhook-Relay/1.0"


# Global settings instance
settings = Settings()

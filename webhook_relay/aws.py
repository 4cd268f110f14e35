"""Shared aioboto3 client configuration for DynamoDB and SQS."""

from typing import Any

from webhook_relay.config import settings
from webhook_relay.logging.config import get_logger

logger = get_logger(__name__)


def get_aws_config() -> dict[str, Any]:
    """
    Build AWS client configuration based on environment.

    For AWS Lambda with IAM roles, returns minimal config (region only).
    For LocalStack, includes endpoint_url and explicit credentials.

    Returns:
        Dictionary of aioboto3 client/resource parameters
    """
    config: dict[str, Any] = {"region_name": settings.aws_region}

    # Only add endpoint_url if explicitly configured (LocalStack)
    if settings.aws_endpoint_url:
        config["endpoint_url"] = settings.aws_endpoint_url

    # Temporary credentials need all three values passed together
    if settings.aws_access_key_id:
        config["aws_access_key_id"] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        config["aws_secret_access_key"] = settings.aws_secret_access_key
    if settings.aws_session_token:
        config["aws_session_token"] = settings.aws_session_token

    logger.debug(
        "AWS client config built",
        extra={"context": {"config_keys": sorted(config.keys())}},
    )
    return config

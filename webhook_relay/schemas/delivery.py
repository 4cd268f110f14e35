"""Pydantic schemas for delivery operations."""

from pydantic import BaseModel, Field


class RetryResponse(BaseModel):
    """
    Response schema for an operator-triggered delivery retry.

    Attributes:
        status: Operation status ("queued")
        delivery_log_id: Delivery log the retry continues from
        delivery_attempt: Attempt number of the queued job
        message: Human-readable message
    """

    status: str = Field(..., description="Operation status")
    delivery_log_id: str = Field(..., description="Source delivery log ID")
    delivery_attempt: int = Field(..., description="Queued attempt number")
    message: str = Field(..., description="Human-readable message")

"""API routes for delivery operations."""

from fastapi import APIRouter, Depends, status

from webhook_relay.dependencies import get_manual_retry_service
from webhook_relay.schemas.delivery import RetryResponse
from webhook_relay.services.manual_retry import ManualRetryService

router = APIRouter(prefix="/deliveries", tags=["Deliveries"])


@router.post(
    "/{log_id}/retry",
    response_model=RetryResponse,
    status_code=status.HTTP_200_OK,
    responses={
        404: {"description": "Delivery log not found"},
        400: {"description": "Subscription inactive or retries exhausted"},
        503: {"description": "Job queue unavailable"},
    },
)
async def retry_delivery(
    log_id: str,
    service: ManualRetryService = Depends(get_manual_retry_service),
) -> RetryResponse:
    """
    Queue another attempt for a logged delivery.

    Args:
        log_id: DeliveryLog identifier
        service: ManualRetryService (injected by dependency)

    Returns:
        RetryResponse with the queued attempt number

    Raises:
        NotFoundError: If the log is unknown (404)
        InactiveSubscriptionError: If the subscription is inactive (400)
        RetriesExhaustedError: If no attempts remain (400)
    """
    result = await service.retry(log_id)
    return RetryResponse(
        status="queued",
        delivery_log_id=result.delivery_log_id,
        delivery_attempt=result.delivery_attempt,
        message=f"Delivery attempt {result.delivery_attempt} queued",
    )

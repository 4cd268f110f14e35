"""FastAPI dependency providers for relay services."""

from functools import lru_cache

from webhook_relay.services.ingestion import IngestionGate
from webhook_relay.services.manual_retry import ManualRetryService


@lru_cache
def get_ingestion_gate() -> IngestionGate:
    """Shared IngestionGate for the API process."""
    return IngestionGate()


@lru_cache
def get_manual_retry_service() -> ManualRetryService:
    """Shared ManualRetryService for the API process."""
    return ManualRetryService()

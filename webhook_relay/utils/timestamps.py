"""Timestamp helpers for ISO 8601 UTC strings."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def isoformat(moment: datetime) -> str:
    """
    Render an aware datetime as ISO 8601 with a trailing Z.

    Args:
        moment: Aware datetime

    Returns:
        String such as 2025-11-11T12:00:00.123456Z
    """
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return isoformat(utc_now())

from datetime import datetime, timezone


def utc_now():
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def isoformat_or_none(value):
    if value is None:
        return None
    return value.isoformat()

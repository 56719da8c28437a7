from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time at millisecond precision (what MongoDB stores)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def ensure_utc(value: datetime) -> datetime:
    """MongoDB hands back naive UTC datetimes; make them aware again."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

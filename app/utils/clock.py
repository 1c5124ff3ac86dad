from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def truncate_to_minute(moment: datetime) -> datetime:
    """Drop seconds, matching calendar-style (year..minute) platform triggers."""
    return moment.replace(second=0, microsecond=0)


def as_utc(moment: datetime) -> datetime:
    """Normalise to UTC; naive values (e.g. read back from SQLite) are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)

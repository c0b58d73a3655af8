from datetime import date, datetime, timezone


def compute_pace(duration_seconds: int, distance_mi: float) -> str:
    """
    Compute pace per mile as 'M:SS/mi' or 'MM:SS/mi'.
    Example: duration=2732 sec, distance=7.35 -> '6:11/mi'
    """
    if distance_mi <= 0:
        return "0:00/mi"

    pace_sec = int(duration_seconds / distance_mi)

    minutes = pace_sec // 60
    seconds = pace_sec % 60
    return f"{minutes}:{seconds:02d}/mi"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Return `dt` in UTC, assuming UTC when it carries no tzinfo."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_date_of(dt: datetime) -> date:
    """Calendar date of a timestamp, truncated in UTC."""
    return to_utc(dt).date()

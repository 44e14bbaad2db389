"""Helpers de dates (toutes les règles métier raisonnent en UTC)."""

from datetime import UTC, date, datetime, time


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Rend un datetime aware; un datetime naïf est considéré comme UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo or UTC)


def to_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def format_fr_date(value: datetime) -> str:
    """Format jj/mm/aaaa."""
    return value.strftime("%d/%m/%Y")


def format_fr_datetime(value: datetime) -> str:
    """Format jj/mm/aaaa HH:MM."""
    return value.strftime("%d/%m/%Y %H:%M")

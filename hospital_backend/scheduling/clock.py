from datetime import date, datetime, time, timedelta, timezone

from hospital_backend.core.config import SchedulingConfig
from hospital_backend.scheduling.errors import InvalidInput


def localize(value: datetime, config: SchedulingConfig) -> datetime:
    """Attach the hospital timezone to naive values; aware values are kept."""
    if value.tzinfo is None:
        return value.replace(tzinfo=config.tzinfo)
    return value


def to_storage(value: datetime, config: SchedulingConfig) -> datetime:
    """Convert to the naive UTC representation kept in the database."""
    return localize(value, config).astimezone(timezone.utc).replace(tzinfo=None)


def from_storage(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def add_minutes(value: datetime, minutes: int) -> datetime:
    """Add elapsed minutes and return the result in UTC."""
    return value.astimezone(timezone.utc) + timedelta(minutes=minutes)


def require_aware(value: datetime, label: str) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidInput(f'{label} must carry a timezone.')
    return value


def day_bounds(day: date, config: SchedulingConfig) -> tuple[datetime, datetime]:
    # Next civil midnight, so DST days are 23 or 25 hours long.
    start = datetime.combine(day, time(0, 0), tzinfo=config.tzinfo)
    end = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=config.tzinfo)
    return start, end


def parse_day(value: str | None, config: SchedulingConfig | None = None) -> date:
    if value is None or not value.strip():
        raise InvalidInput('Date is required.')

    normalized = value.strip()
    try:
        return date.fromisoformat(normalized)
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(normalized.replace('Z', '+00:00'))
    except ValueError as exc:
        raise InvalidInput(f'Invalid date: {normalized!r}.') from exc

    # An instant names the civil day it falls on in the hospital timezone.
    if parsed.tzinfo is not None and config is not None:
        parsed = parsed.astimezone(config.tzinfo)
    return parsed.date()

"""Timezone helpers.

Timestamps are stored in UTC. Some providers hand back naive datetimes, so
comparisons go through ``as_utc`` first.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def has_passed(moment: datetime | None, now: datetime | None = None) -> bool:
    """True when ``moment`` is set and strictly in the past."""
    if moment is None:
        return False
    return (as_utc(now) or utcnow()) > as_utc(moment)

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

import pytz

from .exceptions import InvalidInstantError, TimezoneResolutionError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Lima"
DEFAULT_FALLBACK_OFFSET_HOURS = -5


@dataclass(frozen=True)
class LocalClock:
    """An instant read off a wall clock in some timezone."""

    instant_utc: datetime
    timezone: str
    local_datetime: datetime
    time_of_day: str
    local_date: date
    fallback_used: bool = False


def as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_local_clock(
    instant: datetime,
    tz_name: str = DEFAULT_TIMEZONE,
    *,
    fallback_offset_hours: int = DEFAULT_FALLBACK_OFFSET_HOURS,
    strict: bool = False,
) -> LocalClock:
    """
    Convert ``instant`` to local time-of-day and calendar date in ``tz_name``.

    Naive instants are read as UTC. Instants whose local reading falls outside
    the representable date range raise InvalidInstantError. An unknown zone raises
    TimezoneResolutionError in strict mode; otherwise both the time of day and
    the date come from one fixed-offset conversion and the clock is flagged.
    """
    fallback_used = False
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError as exc:
        if strict:
            raise TimezoneResolutionError(f"Unknown timezone {tz_name!r}.") from exc
        logger.warning(
            "Unknown timezone %r; falling back to fixed UTC%+d offset",
            tz_name,
            fallback_offset_hours,
        )
        tz = timezone(timedelta(hours=fallback_offset_hours))
        fallback_used = True

    try:
        instant_utc = as_utc(instant)
        local = instant_utc.astimezone(tz)
    except OverflowError as exc:
        raise InvalidInstantError(f"Instant {instant.isoformat()} is out of range in {tz_name}.") from exc
    return LocalClock(
        instant_utc=instant_utc,
        timezone=tz_name,
        local_datetime=local,
        time_of_day=local.strftime("%H:%M:%S"),
        local_date=local.date(),
        fallback_used=fallback_used,
    )

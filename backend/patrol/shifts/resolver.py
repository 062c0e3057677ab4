"""
Resolve which shift window is active at an instant.

The resolver is a pure function over an in-memory snapshot of windows: it
performs no I/O and keeps no state, so it is safe to call from any number of
request handlers at once.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone

from .clock import DEFAULT_FALLBACK_OFFSET_HOURS, DEFAULT_TIMEZONE, LocalClock, to_local_clock
from .exceptions import InvalidInstantError
from .windows import ShiftWindow, contains, is_usable, parse_time_of_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MalformedWindowSkipped:
    name: str
    reason: str


@dataclass(frozen=True)
class ActiveWindow:
    window: ShiftWindow
    local_time: str
    occurrence_date: date
    clock: LocalClock
    skipped: tuple[MalformedWindowSkipped, ...] = ()


@dataclass(frozen=True)
class NoActiveWindow:
    local_time: str
    candidates: tuple[ShiftWindow, ...]
    clock: LocalClock
    skipped: tuple[MalformedWindowSkipped, ...] = ()


Resolution = ActiveWindow | NoActiveWindow


def _well_formed(
    windows: Iterable[ShiftWindow],
) -> tuple[list[ShiftWindow], list[MalformedWindowSkipped]]:
    valid: list[ShiftWindow] = []
    skipped: list[MalformedWindowSkipped] = []
    for window in windows:
        if not is_usable(window):
            continue
        try:
            start = parse_time_of_day(window.start_time)
            end = parse_time_of_day(window.end_time)
        except ValueError as exc:
            logger.warning("Skipping malformed shift window %r: %s", window.name, exc)
            skipped.append(MalformedWindowSkipped(name=window.name, reason=str(exc)))
            continue
        valid.append(replace(window, start_time=start, end_time=end))
    valid.sort(key=lambda w: w.name)
    return valid, skipped


def occurrence_date(window: ShiftWindow, time_of_day: str, local_date: date) -> date:
    # Early-morning tail of a wrapping window belongs to the previous day's shift.
    if window.wraps_midnight and time_of_day < window.start_time:
        try:
            return local_date - timedelta(days=1)
        except OverflowError as exc:
            raise InvalidInstantError(f"No calendar date precedes {local_date.isoformat()}.") from exc
    return local_date


def resolve_active_window(
    windows: Iterable[ShiftWindow],
    *,
    instant: datetime | None = None,
    tz_name: str = DEFAULT_TIMEZONE,
    fallback_offset_hours: int = DEFAULT_FALLBACK_OFFSET_HOURS,
    strict_timezone: bool = False,
) -> Resolution:
    """
    Return the active window at ``instant`` (default now) in ``tz_name``.

    Windows are checked in name order and the first match wins, even if the
    catalog holds overlapping windows. Rows with unparseable times are skipped
    and reported on the result instead of aborting resolution.
    """
    clock = to_local_clock(
        instant if instant is not None else datetime.now(timezone.utc),
        tz_name,
        fallback_offset_hours=fallback_offset_hours,
        strict=strict_timezone,
    )
    candidates, skipped = _well_formed(windows)
    now = clock.time_of_day

    for window in candidates:
        if contains(window, now):
            return ActiveWindow(
                window=window,
                local_time=now,
                occurrence_date=occurrence_date(window, now, clock.local_date),
                clock=clock,
                skipped=tuple(skipped),
            )

    return NoActiveWindow(
        local_time=now,
        candidates=tuple(candidates),
        clock=clock,
        skipped=tuple(skipped),
    )

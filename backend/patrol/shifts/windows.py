"""
Shift window value type and the time-of-day helpers that operate on it.

Times of day are carried as zero-padded ``HH:MM:SS`` strings so that plain
string comparison orders them correctly within a single nominal day.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time

from .exceptions import InvalidWindowError

MAX_NAME_LENGTH = 32
# Collides with the active-window lookup route.
RESERVED_NAMES = frozenset({"ACTIVE"})
SECONDS_PER_DAY = 24 * 60 * 60

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")

TimeLike = str | time


@dataclass(frozen=True)
class ShiftWindow:
    name: str
    start_time: str
    end_time: str
    wraps_midnight: bool = False
    active: bool = True
    deleted_at: datetime | None = None
    created_by: int | None = None
    updated_by: int | None = None
    deleted_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def normalize_name(value: str) -> str:
    name = (value or "").strip().upper()
    if not name:
        raise ValueError("Shift window name is required.")
    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Shift window name must be at most {MAX_NAME_LENGTH} characters.")
    if "/" in name:
        raise ValueError("Shift window name cannot contain '/'.")
    if name in RESERVED_NAMES:
        raise ValueError(f"Shift window name {name} is reserved.")
    return name


def parse_time_of_day(value: TimeLike) -> str:
    """
    Normalize a wall-clock time to ``HH:MM:SS``.

    Accepts ``datetime.time`` or a 24h string in ``H:MM``, ``HH:MM`` or
    ``HH:MM:SS`` form. Raises ValueError for anything else.
    """
    if isinstance(value, time):
        return value.replace(microsecond=0).strftime("%H:%M:%S")
    if not isinstance(value, str):
        raise ValueError(f"Time of day must be a string, got {type(value).__name__}.")
    match = _TIME_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time of day {value!r}; expected HH:MM:SS (24h).")
    hours, minutes, seconds = match.groups()
    return f"{int(hours):02d}:{int(minutes):02d}:{int(seconds or 0):02d}"


def _seconds(time_of_day: str) -> int:
    hours, minutes, seconds = (int(part) for part in time_of_day.split(":"))
    return hours * 3600 + minutes * 60 + seconds


def validate_window_times(start_time: str, end_time: str, wraps_midnight: bool) -> None:
    if not wraps_midnight and end_time <= start_time:
        raise InvalidWindowError(
            f"End time {end_time} must be after start time {start_time} "
            "when the window does not wrap midnight."
        )


def is_usable(window: ShiftWindow) -> bool:
    return window.active and window.deleted_at is None


def contains(window: ShiftWindow, time_of_day: str) -> bool:
    """Start inclusive, end exclusive. Wrapping windows cover both sides of midnight."""
    if window.wraps_midnight:
        return time_of_day >= window.start_time or time_of_day < window.end_time
    return window.start_time <= time_of_day < window.end_time


def duration_minutes(window: ShiftWindow) -> int:
    start = _seconds(window.start_time)
    end = _seconds(window.end_time)
    if window.wraps_midnight:
        end += SECONDS_PER_DAY
    return round((end - start) / 60)

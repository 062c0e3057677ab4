from .clock import LocalClock, to_local_clock
from .exceptions import (
    AlreadyActiveError,
    AlreadyInactiveError,
    DuplicateActiveWindowError,
    InvalidInstantError,
    InvalidWindowError,
    ShiftWindowError,
    TimezoneResolutionError,
    WindowNotFoundError,
)
from .lifecycle import EventAction, Transition, WindowEvent
from .resolver import ActiveWindow, MalformedWindowSkipped, NoActiveWindow, resolve_active_window
from .windows import ShiftWindow, contains, duration_minutes, is_usable, parse_time_of_day

__all__ = [
    "ActiveWindow",
    "AlreadyActiveError",
    "AlreadyInactiveError",
    "DuplicateActiveWindowError",
    "EventAction",
    "InvalidInstantError",
    "InvalidWindowError",
    "LocalClock",
    "MalformedWindowSkipped",
    "NoActiveWindow",
    "ShiftWindow",
    "ShiftWindowError",
    "TimezoneResolutionError",
    "Transition",
    "WindowEvent",
    "WindowNotFoundError",
    "contains",
    "duration_minutes",
    "is_usable",
    "parse_time_of_day",
    "resolve_active_window",
    "to_local_clock",
]

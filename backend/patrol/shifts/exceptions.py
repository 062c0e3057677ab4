from __future__ import annotations


class ShiftWindowError(Exception):
    """Base class for shift-window domain errors surfaced to the API layer."""


class InvalidWindowError(ShiftWindowError):
    pass


class DuplicateActiveWindowError(ShiftWindowError):
    pass


class AlreadyActiveError(ShiftWindowError):
    pass


class AlreadyInactiveError(ShiftWindowError):
    pass


class WindowNotFoundError(ShiftWindowError):
    pass


class TimezoneResolutionError(ShiftWindowError):
    pass


class InvalidInstantError(ShiftWindowError):
    pass

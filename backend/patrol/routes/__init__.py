from . import shift_windows

__all__ = ["shift_windows"]

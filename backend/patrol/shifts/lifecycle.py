"""
State transitions for the shift-window catalog.

Each transition takes the current window for a name (or None) and returns the
new window together with the audit event describing the change. Nothing here
touches storage; the catalog module applies the result under a row lock.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from .exceptions import (
    AlreadyActiveError,
    AlreadyInactiveError,
    DuplicateActiveWindowError,
    WindowNotFoundError,
)
from .windows import ShiftWindow, is_usable, validate_window_times

_AUDITED_FIELDS = ("start_time", "end_time", "wraps_midnight", "active", "deleted_at", "deleted_by")


class EventAction(str, Enum):
    CREATED = "created"
    RECREATED = "recreated"
    UPDATED = "updated"
    DELETED = "deleted"
    REACTIVATED = "reactivated"


@dataclass(frozen=True)
class WindowEvent:
    window_name: str
    action: EventAction
    actor_id: int | None
    occurred_at: datetime
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Transition:
    window: ShiftWindow
    event: WindowEvent


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def diff_windows(before: ShiftWindow | None, after: ShiftWindow) -> dict[str, list[Any]]:
    changes: dict[str, list[Any]] = {}
    for name in _AUDITED_FIELDS:
        old = getattr(before, name) if before is not None else None
        new = getattr(after, name)
        if before is None or old != new:
            changes[name] = [_jsonable(old), _jsonable(new)]
    return changes


def _transition(
    before: ShiftWindow | None, after: ShiftWindow, action: EventAction, actor_id: int | None, now: datetime
) -> Transition:
    event = WindowEvent(
        window_name=after.name,
        action=action,
        actor_id=actor_id,
        occurred_at=now,
        changes=diff_windows(before, after),
    )
    return Transition(window=after, event=event)


def _revive(existing: ShiftWindow, *, actor_id: int | None, now: datetime) -> ShiftWindow:
    return replace(
        existing,
        active=True,
        deleted_at=None,
        deleted_by=None,
        updated_by=actor_id,
        updated_at=now,
    )


def create_window(
    existing: ShiftWindow | None,
    *,
    name: str,
    start_time: str,
    end_time: str,
    wraps_midnight: bool = False,
    actor_id: int | None,
    now: datetime,
) -> Transition:
    """
    Create ``name``, or revive a soft-deleted/inactive row of the same name
    in place with the new times (merge-on-recreate).
    """
    validate_window_times(start_time, end_time, wraps_midnight)

    if existing is not None:
        if is_usable(existing):
            raise DuplicateActiveWindowError(f"An active shift window named {name} already exists.")
        revived = replace(
            _revive(existing, actor_id=actor_id, now=now),
            start_time=start_time,
            end_time=end_time,
            wraps_midnight=wraps_midnight,
        )
        return _transition(existing, revived, EventAction.RECREATED, actor_id, now)

    created = ShiftWindow(
        name=name,
        start_time=start_time,
        end_time=end_time,
        wraps_midnight=wraps_midnight,
        active=True,
        created_by=actor_id,
        updated_by=actor_id,
        created_at=now,
        updated_at=now,
    )
    return _transition(None, created, EventAction.CREATED, actor_id, now)


def update_window(
    existing: ShiftWindow | None,
    *,
    start_time: str | None = None,
    end_time: str | None = None,
    wraps_midnight: bool | None = None,
    active: bool | None = None,
    actor_id: int | None,
    now: datetime,
) -> Transition:
    if existing is None or existing.deleted_at is not None:
        raise WindowNotFoundError("Shift window not found.")

    changes: dict[str, Any] = {
        "start_time": start_time,
        "end_time": end_time,
        "wraps_midnight": wraps_midnight,
        "active": active,
    }
    updated = replace(
        existing,
        **{key: value for key, value in changes.items() if value is not None},
        updated_by=actor_id,
        updated_at=now,
    )
    validate_window_times(updated.start_time, updated.end_time, updated.wraps_midnight)
    return _transition(existing, updated, EventAction.UPDATED, actor_id, now)


def delete_window(existing: ShiftWindow | None, *, actor_id: int | None, now: datetime) -> Transition:
    if existing is None:
        raise WindowNotFoundError("Shift window not found.")
    if not is_usable(existing):
        raise AlreadyInactiveError(f"Shift window {existing.name} is already inactive.")

    deleted = replace(
        existing,
        active=False,
        deleted_at=now,
        deleted_by=actor_id,
        updated_by=actor_id,
        updated_at=now,
    )
    return _transition(existing, deleted, EventAction.DELETED, actor_id, now)


def reactivate_window(
    existing: ShiftWindow | None,
    *,
    start_time: str | None = None,
    end_time: str | None = None,
    actor_id: int | None,
    now: datetime,
) -> Transition:
    if existing is None:
        raise WindowNotFoundError("Shift window not found.")
    if is_usable(existing):
        raise AlreadyActiveError(f"Shift window {existing.name} is already active.")

    revived = _revive(existing, actor_id=actor_id, now=now)
    if start_time is not None or end_time is not None:
        revived = replace(
            revived,
            start_time=start_time if start_time is not None else revived.start_time,
            end_time=end_time if end_time is not None else revived.end_time,
        )
        validate_window_times(revived.start_time, revived.end_time, revived.wraps_midnight)
    return _transition(existing, revived, EventAction.REACTIVATED, actor_id, now)

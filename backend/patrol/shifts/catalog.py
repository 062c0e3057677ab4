from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import ShiftWindowEvent, ShiftWindowRecord, User
from .exceptions import WindowNotFoundError
from .lifecycle import (
    Transition,
    WindowEvent,
    create_window,
    delete_window,
    reactivate_window,
    update_window,
)
from .windows import ShiftWindow

logger = logging.getLogger(__name__)

DEFAULT_WINDOWS: tuple[tuple[str, str, str, bool], ...] = (
    ("MORNING", "07:00:00", "15:00:00", False),
    ("AFTERNOON", "15:00:00", "23:00:00", False),
    ("NIGHT", "23:00:00", "07:00:00", True),
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_window(record: ShiftWindowRecord) -> ShiftWindow:
    return ShiftWindow(
        name=record.name,
        start_time=record.start_time,
        end_time=record.end_time,
        wraps_midnight=bool(record.wraps_midnight),
        active=bool(record.active),
        deleted_at=record.deleted_at,
        created_by=record.created_by,
        updated_by=record.updated_by,
        deleted_by=record.deleted_by,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _write(record: ShiftWindowRecord, window: ShiftWindow) -> None:
    record.start_time = window.start_time
    record.end_time = window.end_time
    record.wraps_midnight = window.wraps_midnight
    record.active = window.active
    record.deleted_at = window.deleted_at
    record.deleted_by = window.deleted_by
    record.updated_by = window.updated_by
    record.updated_at = window.updated_at
    if window.created_by is not None:
        record.created_by = window.created_by
    if window.created_at is not None:
        record.created_at = window.created_at


def _event_row(event: WindowEvent) -> ShiftWindowEvent:
    return ShiftWindowEvent(
        window_name=event.window_name,
        action=event.action.value,
        actor_id=event.actor_id,
        occurred_at=event.occurred_at,
        changes=dict(event.changes),
    )


def _load_for_update(db: Session, name: str) -> ShiftWindowRecord | None:
    return db.scalar(
        select(ShiftWindowRecord).where(ShiftWindowRecord.name == name).with_for_update()
    )


def _apply_once(
    db: Session,
    name: str,
    plan: Callable[[ShiftWindow | None], Transition],
) -> Transition:
    record = _load_for_update(db, name)
    try:
        transition = plan(_to_window(record) if record is not None else None)
    except Exception:
        # Release the row lock before the domain error reaches the caller.
        db.rollback()
        raise

    if record is None:
        record = ShiftWindowRecord(name=transition.window.name)
        db.add(record)
    _write(record, transition.window)
    try:
        db.flush()
        db.add(_event_row(transition.event))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    return transition


def _apply(
    db: Session,
    name: str,
    plan: Callable[[ShiftWindow | None], Transition],
) -> Transition:
    """
    Lock the row for ``name``, run ``plan`` against its current state and
    persist the resulting window plus its audit event in one transaction.

    A concurrent insert of the same name loses on the primary key; the losing
    call is retried once against the row that won.
    """
    try:
        transition = _apply_once(db, name, plan)
    except IntegrityError:
        logger.info("Concurrent write on shift window %s; retrying against stored row", name)
        transition = _apply_once(db, name, plan)

    logger.info(
        "Shift window %s %s by user %s",
        name,
        transition.event.action.value,
        transition.event.actor_id,
    )
    return transition


def list_usable_windows(db: Session) -> list[ShiftWindow]:
    records = db.scalars(
        select(ShiftWindowRecord)
        .where(ShiftWindowRecord.active.is_(True), ShiftWindowRecord.deleted_at.is_(None))
        .order_by(ShiftWindowRecord.name)
    )
    return [_to_window(record) for record in records]


def list_shift_windows(
    db: Session,
    *,
    active: bool | None = None,
    include_deleted: bool = False,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[ShiftWindow], int]:
    stmt = select(ShiftWindowRecord)
    if active is not None:
        stmt = stmt.where(ShiftWindowRecord.active.is_(active))
    if not include_deleted:
        stmt = stmt.where(ShiftWindowRecord.deleted_at.is_(None))

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    records = db.scalars(
        stmt.order_by(ShiftWindowRecord.name).offset((page - 1) * limit).limit(limit)
    )
    return [_to_window(record) for record in records], total


def get_shift_window(db: Session, name: str, *, include_deleted: bool = True) -> ShiftWindow:
    record = db.get(ShiftWindowRecord, name)
    if record is None or (not include_deleted and record.deleted_at is not None):
        raise WindowNotFoundError("Shift window not found.")
    return _to_window(record)


def create_shift_window(
    db: Session,
    *,
    name: str,
    start_time: str,
    end_time: str,
    wraps_midnight: bool = False,
    actor_id: int | None,
) -> Transition:
    return _apply(
        db,
        name,
        lambda existing: create_window(
            existing,
            name=name,
            start_time=start_time,
            end_time=end_time,
            wraps_midnight=wraps_midnight,
            actor_id=actor_id,
            now=_now(),
        ),
    )


def update_shift_window(
    db: Session,
    name: str,
    *,
    start_time: str | None = None,
    end_time: str | None = None,
    wraps_midnight: bool | None = None,
    active: bool | None = None,
    actor_id: int | None,
) -> Transition:
    return _apply(
        db,
        name,
        lambda existing: update_window(
            existing,
            start_time=start_time,
            end_time=end_time,
            wraps_midnight=wraps_midnight,
            active=active,
            actor_id=actor_id,
            now=_now(),
        ),
    )


def delete_shift_window(db: Session, name: str, *, actor_id: int | None) -> Transition:
    return _apply(db, name, lambda existing: delete_window(existing, actor_id=actor_id, now=_now()))


def reactivate_shift_window(
    db: Session,
    name: str,
    *,
    start_time: str | None = None,
    end_time: str | None = None,
    actor_id: int | None,
) -> Transition:
    return _apply(
        db,
        name,
        lambda existing: reactivate_window(
            existing,
            start_time=start_time,
            end_time=end_time,
            actor_id=actor_id,
            now=_now(),
        ),
    )


def load_actors(db: Session, windows: Iterable[ShiftWindow]) -> dict[int, User]:
    """Users referenced by the audit columns of ``windows``, keyed by id."""
    ids = {
        user_id
        for window in windows
        for user_id in (window.created_by, window.updated_by, window.deleted_by)
        if user_id is not None
    }
    if not ids:
        return {}
    return {user.id: user for user in db.scalars(select(User).where(User.id.in_(ids)))}


def list_window_events(db: Session, name: str) -> list[ShiftWindowEvent]:
    if db.get(ShiftWindowRecord, name) is None:
        raise WindowNotFoundError("Shift window not found.")
    return list(
        db.scalars(
            select(ShiftWindowEvent)
            .where(ShiftWindowEvent.window_name == name)
            .order_by(ShiftWindowEvent.occurred_at, ShiftWindowEvent.id)
        )
    )


def seed_default_windows(db: Session, *, actor_id: int | None) -> list[str]:
    """Create the standard three-shift day for any name not yet in the catalog."""
    created: list[str] = []
    for name, start, end, wraps in DEFAULT_WINDOWS:
        if db.get(ShiftWindowRecord, name) is not None:
            continue
        create_shift_window(
            db,
            name=name,
            start_time=start,
            end_time=end,
            wraps_midnight=wraps,
            actor_id=actor_id,
        )
        created.append(name)
    return created

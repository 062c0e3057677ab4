"""
Shift Windows API Router
========================
Catalog of the named daily patrol shifts and the active-shift lookup.

Endpoints:
  GET    /api/v1/shift-windows                      - Paginated catalog
  GET    /api/v1/shift-windows/active               - Shift active at now (or ?timestamp=)
  GET    /api/v1/shift-windows/{name}               - One window, soft-deleted included
  POST   /api/v1/shift-windows                      - Create (revives a deleted name)
  PUT    /api/v1/shift-windows/{name}               - Partial update
  DELETE /api/v1/shift-windows/{name}               - Soft delete
  POST   /api/v1/shift-windows/{name}/reactivate    - Undo a soft delete
  GET    /api/v1/shift-windows/{name}/events        - Audit trail
"""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Body, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..deps import get_current_user
from ..models import User
from ..schemas import (
    ActiveWindowOut,
    NoActiveWindowOut,
    PaginationOut,
    ShiftWindowCreate,
    ShiftWindowEventOut,
    ShiftWindowOut,
    ShiftWindowPage,
    ShiftWindowReactivate,
    ShiftWindowUpdate,
)
from ..shifts import catalog
from ..shifts.lifecycle import EventAction
from ..shifts.resolver import ActiveWindow, resolve_active_window
from ..shifts.windows import normalize_name

router = APIRouter(prefix="/api/v1/shift-windows", tags=["Shift windows"])


def _path_name(name: str) -> str:
    try:
        return normalize_name(name)
    except ValueError:
        # Nothing can be stored under an invalid name.
        return name


@router.get("", response_model=ShiftWindowPage)
def list_windows(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    active: bool | None = Query(None),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> ShiftWindowPage:
    windows, total = catalog.list_shift_windows(
        db,
        active=active,
        include_deleted=include_deleted,
        page=page,
        limit=limit,
    )
    actors = catalog.load_actors(db, windows)
    return ShiftWindowPage(
        items=[ShiftWindowOut.from_window(w, actors) for w in windows],
        pagination=PaginationOut.build(total=total, page=page, limit=limit),
    )


@router.get(
    "/active",
    response_model=ActiveWindowOut,
    responses={404: {"model": NoActiveWindowOut}},
)
def active_window(
    timestamp: datetime | None = Query(None, description="ISO-8601 instant to resolve instead of now"),
    timezone: str | None = Query(None, description="IANA timezone name"),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    result = resolve_active_window(
        catalog.list_usable_windows(db),
        instant=timestamp,
        tz_name=timezone or settings.shift_timezone,
        fallback_offset_hours=settings.shift_fallback_utc_offset_hours,
        strict_timezone=settings.shift_strict_timezone,
    )
    if isinstance(result, ActiveWindow):
        return ActiveWindowOut.from_resolution(result, catalog.load_actors(db, [result.window]))

    body = NoActiveWindowOut.from_resolution(result)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=body.model_dump(mode="json", by_alias=True),
    )


@router.get("/{name}", response_model=ShiftWindowOut)
def get_window(
    name: str,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> ShiftWindowOut:
    window = catalog.get_shift_window(db, _path_name(name))
    return ShiftWindowOut.from_window(window, catalog.load_actors(db, [window]))


@router.post("", response_model=ShiftWindowOut, status_code=status.HTTP_201_CREATED)
def create_window(
    payload: ShiftWindowCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ShiftWindowOut:
    transition = catalog.create_shift_window(
        db,
        name=payload.name,
        start_time=payload.start_time,
        end_time=payload.end_time,
        wraps_midnight=payload.wraps_midnight,
        actor_id=user.id,
    )
    if transition.event.action is EventAction.RECREATED:
        response.status_code = status.HTTP_200_OK
    return ShiftWindowOut.from_window(transition.window, catalog.load_actors(db, [transition.window]))


@router.put("/{name}", response_model=ShiftWindowOut)
def update_window(
    name: str,
    payload: ShiftWindowUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ShiftWindowOut:
    transition = catalog.update_shift_window(
        db,
        _path_name(name),
        start_time=payload.start_time,
        end_time=payload.end_time,
        wraps_midnight=payload.wraps_midnight,
        active=payload.active,
        actor_id=user.id,
    )
    return ShiftWindowOut.from_window(transition.window, catalog.load_actors(db, [transition.window]))


@router.delete("/{name}")
def delete_window(
    name: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, object]:
    transition = catalog.delete_shift_window(db, _path_name(name), actor_id=user.id)
    return {"ok": True, "detail": f"Shift window {transition.window.name} deleted."}


@router.post("/{name}/reactivate", response_model=ShiftWindowOut)
def reactivate_window(
    name: str,
    payload: ShiftWindowReactivate | None = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> ShiftWindowOut:
    payload = payload or ShiftWindowReactivate()
    transition = catalog.reactivate_shift_window(
        db,
        _path_name(name),
        start_time=payload.start_time,
        end_time=payload.end_time,
        actor_id=user.id,
    )
    return ShiftWindowOut.from_window(transition.window, catalog.load_actors(db, [transition.window]))


@router.get("/{name}/events", response_model=list[ShiftWindowEventOut])
def window_events(
    name: str,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[ShiftWindowEventOut]:
    events = catalog.list_window_events(db, _path_name(name))
    return [ShiftWindowEventOut.model_validate(event) for event in events]

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .shifts.clock import LocalClock
from .shifts.resolver import ActiveWindow, MalformedWindowSkipped, NoActiveWindow
from .shifts.windows import ShiftWindow, duration_minutes, normalize_name, parse_time_of_day


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _time_or_none(value: Any) -> str | None:
    if value is None:
        return None
    return parse_time_of_day(value)


class ShiftWindowCreate(CamelModel):
    name: str
    start_time: str
    end_time: str
    wraps_midnight: bool = False

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        return normalize_name(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _times(cls, value: Any) -> str:
        return parse_time_of_day(value)


class ShiftWindowUpdate(CamelModel):
    start_time: str | None = None
    end_time: str | None = None
    wraps_midnight: bool | None = None
    active: bool | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _times(cls, value: Any) -> str | None:
        return _time_or_none(value)


class ShiftWindowReactivate(CamelModel):
    start_time: str | None = None
    end_time: str | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _times(cls, value: Any) -> str | None:
        return _time_or_none(value)


class UserSummaryOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str | None = None
    email: str


class ShiftWindowOut(CamelModel):
    name: str
    start_time: str
    end_time: str
    wraps_midnight: bool
    active: bool
    duration_minutes: int | None = None
    created_by: int | None = None
    updated_by: int | None = None
    deleted_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    creator: UserSummaryOut | None = None
    updater: UserSummaryOut | None = None
    deleter: UserSummaryOut | None = None

    @classmethod
    def from_window(cls, window: ShiftWindow, actors: Mapping[int, Any] | None = None) -> "ShiftWindowOut":
        return cls(**_window_fields(window, actors))


def _actor(actors: Mapping[int, Any] | None, user_id: int | None) -> UserSummaryOut | None:
    if not actors or user_id is None or user_id not in actors:
        return None
    return UserSummaryOut.model_validate(actors[user_id])


def _window_fields(window: ShiftWindow, actors: Mapping[int, Any] | None = None) -> dict[str, Any]:
    try:
        minutes: int | None = duration_minutes(window)
    except ValueError:
        minutes = None
    return {
        "name": window.name,
        "start_time": window.start_time,
        "end_time": window.end_time,
        "wraps_midnight": window.wraps_midnight,
        "active": window.active,
        "duration_minutes": minutes,
        "created_by": window.created_by,
        "updated_by": window.updated_by,
        "deleted_by": window.deleted_by,
        "created_at": window.created_at,
        "updated_at": window.updated_at,
        "deleted_at": window.deleted_at,
        "creator": _actor(actors, window.created_by),
        "updater": _actor(actors, window.updated_by),
        "deleter": _actor(actors, window.deleted_by),
    }


class PaginationOut(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, *, total: int, page: int, limit: int) -> "PaginationOut":
        total_pages = (total + limit - 1) // limit
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class ShiftWindowPage(CamelModel):
    items: list[ShiftWindowOut]
    pagination: PaginationOut


class ShiftWindowEventOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    window_name: str
    action: str
    actor_id: int | None = None
    occurred_at: datetime
    changes: dict[str, Any] = Field(default_factory=dict)


class CandidateOut(CamelModel):
    name: str
    start_time: str
    end_time: str
    wraps_midnight: bool


class SkippedWindowOut(CamelModel):
    name: str
    reason: str

    @classmethod
    def from_skipped(cls, skipped: MalformedWindowSkipped) -> "SkippedWindowOut":
        return cls(name=skipped.name, reason=skipped.reason)


class ResolutionDebug(CamelModel):
    server_utc: datetime
    timezone: str
    local_time: str
    local_date_time: str
    timezone_fallback: bool

    @classmethod
    def from_clock(cls, clock: LocalClock) -> "ResolutionDebug":
        return cls(
            server_utc=clock.instant_utc,
            timezone=clock.timezone,
            local_time=clock.time_of_day,
            local_date_time=clock.local_datetime.isoformat(),
            timezone_fallback=clock.fallback_used,
        )


class ActiveWindowOut(ShiftWindowOut):
    local_time: str
    is_active_now: bool = True
    occurrence_date: date
    skipped: list[SkippedWindowOut] = Field(default_factory=list)
    debug: ResolutionDebug

    @classmethod
    def from_resolution(
        cls, result: ActiveWindow, actors: Mapping[int, Any] | None = None
    ) -> "ActiveWindowOut":
        return cls(
            **_window_fields(result.window, actors),
            local_time=result.local_time,
            occurrence_date=result.occurrence_date,
            skipped=[SkippedWindowOut.from_skipped(s) for s in result.skipped],
            debug=ResolutionDebug.from_clock(result.clock),
        )


class NoActiveWindowOut(CamelModel):
    detail: str = "No shift window is active at this time."
    local_time: str
    candidates: list[CandidateOut]
    skipped: list[SkippedWindowOut] = Field(default_factory=list)
    debug: ResolutionDebug

    @classmethod
    def from_resolution(cls, result: NoActiveWindow) -> "NoActiveWindowOut":
        return cls(
            local_time=result.local_time,
            candidates=[
                CandidateOut(
                    name=w.name,
                    start_time=w.start_time,
                    end_time=w.end_time,
                    wraps_midnight=w.wraps_midnight,
                )
                for w in result.candidates
            ],
            skipped=[SkippedWindowOut.from_skipped(s) for s in result.skipped],
            debug=ResolutionDebug.from_clock(result.clock),
        )

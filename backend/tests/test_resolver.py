import logging
from datetime import date, datetime, timedelta, timezone

import pytest

from patrol.shifts import (
    ActiveWindow,
    InvalidInstantError,
    NoActiveWindow,
    ShiftWindow,
    TimezoneResolutionError,
    resolve_active_window,
    to_local_clock,
)

LIMA = "America/Lima"


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture()
def standard_day() -> list[ShiftWindow]:
    return [
        ShiftWindow("MORNING", "07:00:00", "15:00:00"),
        ShiftWindow("AFTERNOON", "15:00:00", "23:00:00"),
        ShiftWindow("NIGHT", "23:00:00", "07:00:00", wraps_midnight=True),
    ]


@pytest.mark.parametrize(
    "instant, expected_name, expected_time, expected_date",
    [
        (_utc(2026, 1, 20, 15, 0), "MORNING", "10:00:00", date(2026, 1, 20)),
        (_utc(2026, 1, 20, 20, 0), "AFTERNOON", "15:00:00", date(2026, 1, 20)),
        (_utc(2026, 1, 21, 4, 15), "NIGHT", "23:15:00", date(2026, 1, 20)),
        (_utc(2026, 1, 21, 7, 0), "NIGHT", "02:00:00", date(2026, 1, 20)),
        (_utc(2026, 1, 21, 11, 59, 59), "NIGHT", "06:59:59", date(2026, 1, 20)),
        (_utc(2026, 1, 21, 12, 0), "MORNING", "07:00:00", date(2026, 1, 21)),
    ],
)
def test_resolves_standard_day_in_lima(standard_day, instant, expected_name, expected_time, expected_date):
    result = resolve_active_window(standard_day, instant=instant, tz_name=LIMA)

    assert isinstance(result, ActiveWindow)
    assert result.window.name == expected_name
    assert result.local_time == expected_time
    assert result.occurrence_date == expected_date
    assert result.clock.fallback_used is False


def test_gap_between_windows_reports_candidates():
    windows = [
        ShiftWindow("NIGHT", "23:00:00", "07:00:00", wraps_midnight=True),
        ShiftWindow("MORNING", "07:00:00", "15:00:00"),
        ShiftWindow("AFTERNOON", "15:30:00", "23:00:00"),
    ]

    result = resolve_active_window(windows, instant=_utc(2026, 1, 20, 20, 0), tz_name=LIMA)

    assert isinstance(result, NoActiveWindow)
    assert result.local_time == "15:00:00"
    assert [w.name for w in result.candidates] == ["AFTERNOON", "MORNING", "NIGHT"]


def test_empty_catalog_has_no_active_window():
    result = resolve_active_window([], instant=_utc(2026, 1, 20, 15, 0), tz_name=LIMA)
    assert isinstance(result, NoActiveWindow)
    assert result.candidates == ()


def test_resolution_is_repeatable(standard_day):
    instant = _utc(2026, 1, 21, 4, 15)
    first = resolve_active_window(standard_day, instant=instant, tz_name=LIMA)
    second = resolve_active_window(list(reversed(standard_day)), instant=instant, tz_name=LIMA)
    assert first == second


def test_overlapping_windows_first_by_name_wins():
    windows = [
        ShiftWindow("MORNING", "07:00:00", "15:00:00"),
        ShiftWindow("EARLY", "06:00:00", "12:00:00"),
    ]

    result = resolve_active_window(windows, instant=_utc(2026, 1, 20, 15, 0), tz_name=LIMA)

    assert isinstance(result, ActiveWindow)
    assert result.window.name == "EARLY"


def test_inactive_and_deleted_windows_are_ignored():
    windows = [
        ShiftWindow("MORNING", "07:00:00", "15:00:00", active=False),
        ShiftWindow("DAY", "06:00:00", "18:00:00", deleted_at=_utc(2026, 1, 1)),
    ]

    result = resolve_active_window(windows, instant=_utc(2026, 1, 20, 15, 0), tz_name=LIMA)

    assert isinstance(result, NoActiveWindow)
    assert result.candidates == ()


def test_malformed_window_is_skipped_and_reported(standard_day, caplog):
    windows = [ShiftWindow("AAA_BROKEN", "25:00", "26:00"), *standard_day]

    with caplog.at_level(logging.WARNING, logger="patrol.shifts.resolver"):
        result = resolve_active_window(windows, instant=_utc(2026, 1, 20, 15, 0), tz_name=LIMA)

    assert isinstance(result, ActiveWindow)
    assert result.window.name == "MORNING"
    assert [s.name for s in result.skipped] == ["AAA_BROKEN"]
    assert "AAA_BROKEN" in caplog.text


def test_stored_times_in_short_form_are_normalized():
    windows = [ShiftWindow("MORNING", "7:00", "15:00")]
    result = resolve_active_window(windows, instant=_utc(2026, 1, 20, 12, 0), tz_name=LIMA)

    assert isinstance(result, ActiveWindow)
    assert result.window.start_time == "07:00:00"


def test_naive_instant_is_read_as_utc(standard_day):
    result = resolve_active_window(standard_day, instant=datetime(2026, 1, 20, 15, 0), tz_name=LIMA)
    assert isinstance(result, ActiveWindow)
    assert result.local_time == "10:00:00"


def test_offset_instant_is_converted(standard_day):
    instant = datetime(2026, 1, 20, 17, 0, tzinfo=timezone(timedelta(hours=2)))
    result = resolve_active_window(standard_day, instant=instant, tz_name=LIMA)
    assert isinstance(result, ActiveWindow)
    assert result.local_time == "10:00:00"
    assert result.clock.instant_utc == _utc(2026, 1, 20, 15, 0)


def test_unknown_timezone_falls_back_to_fixed_offset(standard_day, caplog):
    with caplog.at_level(logging.WARNING, logger="patrol.shifts.clock"):
        result = resolve_active_window(
            standard_day, instant=_utc(2026, 1, 21, 4, 15), tz_name="Mars/Olympus_Mons"
        )

    assert isinstance(result, ActiveWindow)
    assert result.window.name == "NIGHT"
    assert result.local_time == "23:15:00"
    assert result.occurrence_date == date(2026, 1, 20)
    assert result.clock.fallback_used is True
    assert "Mars/Olympus_Mons" in caplog.text


def test_fallback_offset_is_configurable():
    clock = to_local_clock(_utc(2026, 1, 20, 15, 0), "Nowhere/Special", fallback_offset_hours=3)
    assert clock.time_of_day == "18:00:00"
    assert clock.local_date == date(2026, 1, 20)
    assert clock.fallback_used is True


def test_unknown_timezone_in_strict_mode_raises(standard_day):
    with pytest.raises(TimezoneResolutionError):
        resolve_active_window(
            standard_day, instant=_utc(2026, 1, 20, 15, 0), tz_name="Mars/Olympus_Mons", strict_timezone=True
        )


def test_daylight_saving_zone_uses_offset_in_effect():
    winter = to_local_clock(_utc(2026, 1, 15, 12, 0), "America/New_York")
    summer = to_local_clock(_utc(2026, 7, 15, 12, 0), "America/New_York")
    assert winter.time_of_day == "07:00:00"
    assert summer.time_of_day == "08:00:00"


def test_local_date_rolls_with_timezone():
    clock = to_local_clock(_utc(2026, 1, 21, 3, 0), LIMA)
    assert clock.local_date == date(2026, 1, 20)
    assert clock.time_of_day == "22:00:00"


@pytest.mark.parametrize(
    "instant",
    [
        _utc(1, 1, 1, 0, 0),
        datetime(9999, 12, 31, 23, 0, tzinfo=timezone(timedelta(hours=-5))),
    ],
)
def test_instant_outside_date_range_is_rejected(standard_day, instant):
    with pytest.raises(InvalidInstantError):
        resolve_active_window(standard_day, instant=instant, tz_name=LIMA)


def test_wrapping_window_on_first_representable_date_is_rejected(standard_day):
    with pytest.raises(InvalidInstantError):
        resolve_active_window(standard_day, instant=_utc(1, 1, 1, 6, 0), tz_name=LIMA)

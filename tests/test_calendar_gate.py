from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from queue_monitor.polling.calendar_gate import CalendarGate, is_weekend, is_within_working_hours

WARSAW = ZoneInfo("Europe/Warsaw")
# 2025-03-03 is a Monday
MONDAY = datetime(2025, 3, 3, tzinfo=WARSAW)


@pytest.mark.parametrize("start_hour,end_hour", [(8, 18), (0, 24), (9, 10), (12, 12)])
def test_working_hours_is_half_open(start_hour, end_hour):
    for hour in range(24):
        expected = start_hour <= hour < end_hour
        assert is_within_working_hours(hour, start_hour, end_hour) is expected


def test_gate_open_on_weekday_inside_hours():
    gate = CalendarGate(8, 18)
    assert gate.is_open(MONDAY.replace(hour=8))
    assert gate.is_open(MONDAY.replace(hour=17, minute=59))


def test_gate_closed_at_end_hour_and_before_start():
    gate = CalendarGate(8, 18)
    assert not gate.is_open(MONDAY.replace(hour=18))
    assert not gate.is_open(MONDAY.replace(hour=7, minute=59))


@pytest.mark.parametrize("day", [8, 9])  # Saturday, Sunday
def test_gate_closed_on_weekend_at_any_hour(day):
    gate = CalendarGate(0, 24)
    for hour in range(24):
        moment = datetime(2025, 3, day, hour, tzinfo=WARSAW)
        assert is_weekend(moment)
        assert not gate.is_open(moment)
        assert gate.closed_reason(moment) == "weekend (Sat-Sun)"


def test_gate_uses_warsaw_time_not_input_timezone():
    gate = CalendarGate(8, 18)
    # 06:30 UTC is 07:30 in Warsaw (CET, UTC+1)
    assert not gate.is_open(datetime(2025, 3, 3, 6, 30, tzinfo=timezone.utc))
    # 07:30 UTC is 08:30 in Warsaw
    assert gate.is_open(datetime(2025, 3, 3, 7, 30, tzinfo=timezone.utc))


def test_weekend_is_evaluated_in_warsaw():
    gate = CalendarGate(0, 24)
    # Friday 23:30 UTC is already Saturday in Warsaw
    assert not gate.is_open(datetime(2025, 3, 7, 23, 30, tzinfo=timezone.utc))


def test_unknown_timezone_keeps_gate_closed():
    gate = CalendarGate(0, 24, timezone="Mars/Olympus_Mons")
    assert not gate.is_open(MONDAY.replace(hour=12))
    assert "unavailable" in gate.closed_reason(MONDAY.replace(hour=12))

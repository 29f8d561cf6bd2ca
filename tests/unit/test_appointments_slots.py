from datetime import date

import pytest

from storefront.appointments.slots import generate_time_slots, is_date_available, to_minutes, upcoming_dates, weekday_name


def test_default_window_is_half_open():
    slots = generate_time_slots("09:00", "17:00")
    assert slots[0] == "09:00"
    assert slots[-1] == "16:30"
    assert "17:00" not in slots
    assert len(slots) == 16

def test_start_off_boundary_rounds_up():
    assert generate_time_slots("09:10", "10:30") == ["09:30", "10:00"]

def test_empty_or_inverted_window():
    assert generate_time_slots("10:00", "10:00") == []
    assert generate_time_slots("17:00", "09:00") == []

def test_twelve_hour_times():
    assert to_minutes("02:00 PM") == 14 * 60
    assert to_minutes("12:30 AM") == 30
    with pytest.raises(ValueError):
        to_minutes("25:00")

def test_weekday_exact_match():
    monday = date(2026, 1, 5)
    assert weekday_name(monday) == "Monday"
    assert is_date_available(monday, ["Monday"])
    assert not is_date_available(monday, ["monday"])
    assert not is_date_available(monday, ["Tuesday"])

def test_empty_availability_allows_every_date():
    assert is_date_available(date(2026, 1, 6), [])
    assert is_date_available(date(2026, 1, 6), None)

def test_upcoming_dates_filters_weekdays():
    dates = upcoming_dates(["Wednesday"], today=date(2026, 1, 5), horizon_days=14)
    assert dates == [date(2026, 1, 7), date(2026, 1, 14)]

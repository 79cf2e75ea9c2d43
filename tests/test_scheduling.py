from datetime import date

import pytest

from telehealth.application.scheduling import (
    candidate_slots,
    generate_slots,
    is_valid_time,
    validate_availability,
)
from telehealth.exceptions import ValidationFailed


def test_generate_slots_is_half_open():
    assert generate_slots("09:00", "11:00") == ["09:00", "09:30", "10:00", "10:30"]
    assert generate_slots("09:00", "09:20") == []


def test_time_labels():
    assert is_valid_time("00:00")
    assert is_valid_time("23:59")
    assert not is_valid_time("24:00")
    assert not is_valid_time("9:00")
    assert not is_valid_time(None)


def test_default_grid_without_availability():
    slots = candidate_slots(None, date(2025, 6, 1))
    assert len(slots) == 18
    assert slots[0] == "09:00" and slots[-1] == "17:30"


def test_missing_weekday_means_unavailable():
    availability = {"monday": {"start": "09:00", "end": "10:00", "available": True}}
    assert candidate_slots(availability, date(2025, 6, 2)) == ["09:00", "09:30"]
    assert candidate_slots(availability, date(2025, 6, 3)) == []


def test_validate_availability_normalises():
    out = validate_availability({"Monday": {"start": "09:00", "end": "17:00", "available": True}, "sunday": {"available": False}})
    assert out["monday"] == {"start": "09:00", "end": "17:00", "available": True}
    assert out["sunday"]["available"] is False


@pytest.mark.parametrize(
    "availability",
    [
        {"monday": {"start": "17:00", "end": "09:00", "available": True}},
        {"monday": {"start": "9am", "end": "17:00", "available": True}},
        {"funday": {"start": "09:00", "end": "17:00", "available": True}},
        {"monday": "all day"},
        ["monday"],
    ],
)
def test_validate_availability_rejects_bad_schedules(availability):
    with pytest.raises(ValidationFailed):
        validate_availability(availability)

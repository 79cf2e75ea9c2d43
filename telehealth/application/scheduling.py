"""Weekly availability schedules and bookable time slots.

A doctor's ``availability`` maps weekday names to
``{"start": "HH:MM", "end": "HH:MM", "available": bool}``. Slots are the
``HH:MM`` labels of fixed-length intervals that fit between start and end.
"""
import re
from datetime import date
from typing import Any, Dict, List, Optional

from ..exceptions import ValidationFailed
from ..models import WEEKDAYS

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_valid_time(value: Any) -> bool:
    return isinstance(value, str) and bool(TIME_PATTERN.match(value))


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def generate_slots(start: str, end: str, slot_minutes: int = 30) -> List[str]:
    """Half-open [start, end): a slot is listed only if it ends by ``end``."""
    first, last = to_minutes(start), to_minutes(end)
    return [format_minutes(m) for m in range(first, last - slot_minutes + 1, slot_minutes)]


def candidate_slots(
    availability: Optional[Dict[str, Any]],
    day: date,
    slot_minutes: int = 30,
    default_start: str = "09:00",
    default_end: str = "18:00",
) -> List[str]:
    if not availability:
        return generate_slots(default_start, default_end, slot_minutes)

    entry = availability.get(weekday_name(day))
    if not entry or not entry.get("available"):
        return []
    start, end = entry.get("start"), entry.get("end")
    if not (is_valid_time(start) and is_valid_time(end)) or to_minutes(end) <= to_minutes(start):
        return []
    return generate_slots(start, end, slot_minutes)


def validate_availability(availability: Any) -> Dict[str, Dict[str, Any]]:
    """Return a normalised copy or raise ValidationFailed listing every bad day."""
    if not isinstance(availability, dict):
        raise ValidationFailed("Availability must be an object keyed by weekday")

    errors = []
    normalized: Dict[str, Dict[str, Any]] = {}
    for day, entry in availability.items():
        key = str(day).lower()
        if key not in WEEKDAYS:
            errors.append({"field": f"availability.{day}", "message": "Unknown weekday"})
            continue
        if not isinstance(entry, dict):
            errors.append({"field": f"availability.{key}", "message": "Entry must be an object"})
            continue

        available = bool(entry.get("available", False))
        start, end = entry.get("start"), entry.get("end")
        if available:
            if not is_valid_time(start):
                errors.append({"field": f"availability.{key}.start", "message": "Start must be HH:MM (24-hour)"})
            if not is_valid_time(end):
                errors.append({"field": f"availability.{key}.end", "message": "End must be HH:MM (24-hour)"})
            if is_valid_time(start) and is_valid_time(end) and to_minutes(end) <= to_minutes(start):
                errors.append({"field": f"availability.{key}", "message": "End time must be after start time"})
        normalized[key] = {"start": start, "end": end, "available": available}

    if errors:
        raise ValidationFailed("Invalid availability schedule", {"errors": errors})
    return normalized

"""Field rules for a driver's trip offer.

validate() is pure: it reports every violated field at once and never touches
the store. normalize() produces the cleaned field set that is handed to
CarpoolStore.create once validate() has come back empty.
"""
import re
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Mapping, Optional
from zoneinfo import ZoneInfo

from carpool.config import settings


MIN_DRIVER_NAME = 2
MIN_DESTINATION = 3
MIN_SEATS = 1
MAX_SEATS = 8
DEFAULT_SEATS = 4


def default_zone() -> tzinfo:
    if settings.CALENDAR_TIMEZONE.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(settings.CALENDAR_TIMEZONE)


def parse_departure(value: Any, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Parse a departure timestamp; naive values are read in the calendar zone.

    Returns None when the value cannot be understood as a timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or default_zone())
    return parsed


def parse_seats(value: Any) -> Optional[int]:
    if value is None:
        return DEFAULT_SEATS
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip(), re.ASCII):
        return int(value.strip())
    return None


def _text(candidate: Mapping[str, Any], field: str) -> str:
    value = candidate.get(field)
    if value is None:
        return ""
    return str(value).strip()


def validate(candidate: Mapping[str, Any], now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    driver_name = _text(candidate, "driver_name")
    if not driver_name:
        errors["driver_name"] = "Driver name is required"
    elif len(driver_name) < MIN_DRIVER_NAME:
        errors["driver_name"] = f"Driver name must be at least {MIN_DRIVER_NAME} characters"

    destination = _text(candidate, "destination")
    if not destination:
        errors["destination"] = "Destination is required"
    elif len(destination) < MIN_DESTINATION:
        errors["destination"] = f"Destination must be at least {MIN_DESTINATION} characters"

    raw_departure = candidate.get("departure_time")
    if raw_departure is None or (isinstance(raw_departure, str) and not raw_departure.strip()):
        errors["departure_time"] = "Departure time is required"
    else:
        departure = parse_departure(raw_departure, tz)
        if departure is None:
            errors["departure_time"] = "Departure time is not a valid date"
        else:
            clock = now or datetime.now(timezone.utc)
            if clock.tzinfo is None:
                clock = clock.replace(tzinfo=tz or default_zone())
            if departure <= clock:
                errors["departure_time"] = "Departure time must be in the future"

    seats = parse_seats(candidate.get("available_seats"))
    if seats is None or seats < MIN_SEATS or seats > MAX_SEATS:
        errors["available_seats"] = f"Available seats must be between {MIN_SEATS} and {MAX_SEATS}"

    return errors


def normalize(candidate: Mapping[str, Any], tz: Optional[tzinfo] = None) -> Dict[str, Any]:
    """Trimmed, typed fields for a candidate that already passed validate()."""
    departure = parse_departure(candidate.get("departure_time"), tz)
    if departure is None:
        raise ValueError("departure_time must be validated before normalize()")
    return {
        "driver_name": _text(candidate, "driver_name"),
        "destination": _text(candidate, "destination"),
        "departure_time": departure.astimezone(timezone.utc),
        "available_seats": parse_seats(candidate.get("available_seats")),
        "notes": _text(candidate, "notes"),
    }

from datetime import datetime, timedelta, timezone


def in_days(days: float, hour: int = 9) -> datetime:
    base = datetime.now(timezone.utc).replace(hour=hour, minute=0, second=0, microsecond=0)
    return base + timedelta(days=days)


def offer(**overrides):
    fields = {
        "driver_name": "Ann",
        "destination": "Zoo Atlanta",
        "departure_time": in_days(2),
        "available_seats": 4,
        "notes": "",
    }
    fields.update(overrides)
    return fields


def stored(**overrides):
    """Validated field set as CarpoolStore.create expects it."""
    fields = offer(**overrides)
    fields["departure_time"] = fields["departure_time"].astimezone(timezone.utc)
    return fields



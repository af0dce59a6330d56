"""Calendar-day views over the trip list.

calendar_day() is the only place a departure timestamp becomes a date, so the
calendar and the list always agree on which day a trip belongs to.
"""
from collections import OrderedDict
from datetime import date, datetime, tzinfo
from typing import Dict, Iterable, List, Optional, Set, Union

from carpool.services.carpool_store import Trip
from carpool.services.validation import default_zone

Day = Union[date, datetime]


def calendar_day(value: Day, tz: Optional[tzinfo] = None) -> date:
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is not None:
        value = value.astimezone(tz or default_zone())
    return value.date()


def trips_on_date(day: Day, trips: Iterable[Trip], tz: Optional[tzinfo] = None) -> List[Trip]:
    zone = tz or default_zone()
    wanted = calendar_day(day, zone)
    return [trip for trip in trips if calendar_day(trip.departure_time, zone) == wanted]


def dates_with_trips(trips: Iterable[Trip], tz: Optional[tzinfo] = None) -> Set[date]:
    zone = tz or default_zone()
    return {calendar_day(trip.departure_time, zone) for trip in trips}


def group_by_day(trips: Iterable[Trip], tz: Optional[tzinfo] = None) -> Dict[date, List[Trip]]:
    zone = tz or default_zone()
    buckets: Dict[date, List[Trip]] = {}
    for trip in trips:
        buckets.setdefault(calendar_day(trip.departure_time, zone), []).append(trip)
    return OrderedDict(sorted(buckets.items()))

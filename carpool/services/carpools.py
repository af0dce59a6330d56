import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from carpool.metrics import TRIPS_CREATED, VALIDATION_FAILURES
from carpool.services import calendar_index
from carpool.services.carpool_store import CarpoolStore, Trip
from carpool.services.errors import ValidationError
from carpool.services.reservation import JoinResult, ReservationService
from carpool.services.validation import default_zone, normalize, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateResult:
    trip: Optional[Trip] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.trip is not None


class CarpoolService:
    """Operations the presentation layer calls: list, create, join and calendar views."""

    def __init__(self, store: CarpoolStore, reservations: Optional[ReservationService] = None, tz: Optional[tzinfo] = None, clock=None):
        self.store = store
        self.reservations = reservations or ReservationService(store)
        self.tz = tz or default_zone()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def list_trips(self) -> List[Trip]:
        return await self.store.list()

    async def create_trip(self, fields: Mapping[str, Any]) -> CreateResult:
        errors = validate(fields, now=self.clock(), tz=self.tz)
        if errors:
            for name in errors:
                VALIDATION_FAILURES.labels(field=name).inc()
            logger.info("carpool offer rejected", extra={"fields": sorted(errors)})
            return CreateResult(errors=errors)

        trip = await self.store.create(normalize(fields, tz=self.tz))
        TRIPS_CREATED.inc()
        logger.info("carpool %s created by %s to %s", trip.id, trip.driver_name, trip.destination)
        return CreateResult(trip=trip)

    async def create_trip_or_raise(self, fields: Mapping[str, Any]) -> Trip:
        result = await self.create_trip(fields)
        if not result.ok:
            raise ValidationError(result.errors)
        return result.trip

    async def join_trip(self, trip_id: int, observed_seats: int, refresh: bool = False) -> JoinResult:
        if refresh:
            return await self.reservations.join_with_refresh(trip_id, observed_seats)
        return await self.reservations.join(trip_id, observed_seats)

    async def trips_on_date(self, day: Union[date, datetime]) -> List[Trip]:
        return calendar_index.trips_on_date(day, await self.list_trips(), self.tz)

    async def dates_with_trips(self) -> Set[date]:
        return calendar_index.dates_with_trips(await self.list_trips(), self.tz)

    async def calendar(self) -> Dict[date, List[Trip]]:
        return calendar_index.group_by_day(await self.list_trips(), self.tz)

"""Seat admission for riders joining a carpool.

A join is a compare-and-swap: the seat count the rider saw is the version
token, and the store only commits ``observed - 1`` if the persisted value still
equals ``observed``. Two riders who both saw one seat cannot both get it; the
second one gets VERSION_CONFLICT and has to look again.
"""
import enum
import logging
import time
from dataclasses import dataclass
from typing import Optional

from carpool.config import settings
from carpool.metrics import JOIN_ATTEMPTS, JOIN_LATENCY
from carpool.services.carpool_store import CarpoolStore, SeatUpdateStatus, Trip
from carpool.services.errors import NotFound, SeatsExhausted, VersionConflict

logger = logging.getLogger(__name__)


class JoinStatus(str, enum.Enum):
    JOINED = "joined"
    SEATS_EXHAUSTED = "seats_exhausted"
    VERSION_CONFLICT = "version_conflict"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class JoinResult:
    status: JoinStatus
    trip_id: int
    observed_seats: int
    trip: Optional[Trip] = None

    @property
    def ok(self) -> bool:
        return self.status is JoinStatus.JOINED

    @property
    def new_seat_count(self) -> Optional[int]:
        if not self.ok:
            return None
        return self.trip.available_seats

    def raise_for_status(self) -> "JoinResult":
        if self.status is JoinStatus.SEATS_EXHAUSTED:
            raise SeatsExhausted(self.trip_id)
        if self.status is JoinStatus.VERSION_CONFLICT:
            raise VersionConflict(self.trip_id, self.observed_seats)
        if self.status is JoinStatus.NOT_FOUND:
            raise NotFound(self.trip_id)
        return self


_UPDATE_TO_JOIN = {
    SeatUpdateStatus.SUCCESS: JoinStatus.JOINED,
    SeatUpdateStatus.CONFLICT: JoinStatus.VERSION_CONFLICT,
    SeatUpdateStatus.NOT_FOUND: JoinStatus.NOT_FOUND,
}


class ReservationService:
    def __init__(self, store: CarpoolStore, retry_limit: Optional[int] = None):
        self.store = store
        self.retry_limit = settings.JOIN_RETRY_LIMIT if retry_limit is None else retry_limit

    async def join(self, trip_id: int, observed_seats: int) -> JoinResult:
        """Claim one seat if the trip still has exactly ``observed_seats`` left."""
        if observed_seats <= 0:
            return self._record(JoinResult(JoinStatus.SEATS_EXHAUSTED, trip_id, observed_seats))

        start = time.perf_counter()
        update = await self.store.conditional_update_seats(trip_id, observed_seats, observed_seats - 1)
        JOIN_LATENCY.observe(time.perf_counter() - start)

        status = _UPDATE_TO_JOIN[update.status]
        return self._record(JoinResult(status, trip_id, observed_seats, update.trip))

    async def join_with_refresh(self, trip_id: int, observed_seats: int) -> JoinResult:
        """join(), then on a version conflict re-read and retry a bounded number of times."""
        result = await self.join(trip_id, observed_seats)
        attempts = 0
        while result.status is JoinStatus.VERSION_CONFLICT and attempts < self.retry_limit:
            attempts += 1
            fresh = await self.store.get(trip_id)
            if fresh is None:
                return self._record(JoinResult(JoinStatus.NOT_FOUND, trip_id, observed_seats))
            logger.info(
                "retrying join on carpool %s with %s seats (was %s)",
                trip_id, fresh.available_seats, result.observed_seats,
            )
            result = await self.join(trip_id, fresh.available_seats)
        return result

    @staticmethod
    def _record(result: JoinResult) -> JoinResult:
        JOIN_ATTEMPTS.labels(result=result.status.value).inc()
        if result.ok:
            logger.info("joined carpool %s, %s seats left", result.trip_id, result.new_seat_count)
        else:
            logger.info(
                "join on carpool %s refused: %s (observed %s)",
                result.trip_id, result.status.value, result.observed_seats,
            )
        return result

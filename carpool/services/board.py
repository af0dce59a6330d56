from typing import List, Optional

from carpool.services.carpool_store import Trip
from carpool.services.carpools import CarpoolService
from carpool.services.reservation import JoinResult


class TripBoard:
    """Read-through view of the trip list for a UI.

    The snapshot only ever changes by re-reading the store or by taking a trip
    the store returned from a confirmed mutation.
    """

    def __init__(self, service: CarpoolService):
        self.service = service
        self._trips: List[Trip] = []

    @property
    def trips(self) -> List[Trip]:
        return list(self._trips)

    async def refresh(self) -> List[Trip]:
        self._trips = await self.service.list_trips()
        return self.trips

    def apply(self, trip: Trip):
        others = [t for t in self._trips if t.id != trip.id]
        others.append(trip)
        self._trips = sorted(others, key=lambda t: (t.departure_time, t.id))

    async def join(self, trip_id: int, refresh: bool = False) -> Optional[JoinResult]:
        """Join using the seat count currently shown; None if the trip is not on the board."""
        shown = next((t for t in self._trips if t.id == trip_id), None)
        if shown is None:
            return None
        result = await self.service.join_trip(trip_id, shown.available_seats, refresh=refresh)
        if result.trip is not None:
            self.apply(result.trip)
        return result

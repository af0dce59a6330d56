"""Persistence boundary for trips.

CarpoolStore is the only writer of trip state. Its single seat mutation is
conditional_update_seats(), a compare-and-swap on available_seats: the write
happens only if the persisted value still equals the caller's expected value.
"""
import abc
import asyncio
import enum
import itertools
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select as sa_select
from sqlalchemy import update as sa_update
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from carpool.models.models import Carpool
from carpool.services.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trip:
    """Snapshot of a persisted carpool. Stale as soon as it is returned."""

    id: int
    driver_name: str
    destination: str
    departure_time: datetime
    available_seats: int
    seat_capacity: int
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_full(self) -> bool:
        return self.available_seats <= 0


class SeatUpdateStatus(str, enum.Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class SeatUpdate:
    status: SeatUpdateStatus
    trip: Optional[Trip] = None


def _utc(value: datetime) -> datetime:
    # sqlite hands back naive values for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _check_transition(expected_seats: int, new_seats: int):
    if new_seats < 0 or new_seats >= expected_seats:
        raise ValueError(f"seat count may only decrease: {expected_seats} -> {new_seats}")


class CarpoolStore(abc.ABC):
    @abc.abstractmethod
    async def create(self, fields: Mapping[str, Any]) -> Trip:
        """Persist a validated trip offer and return it with its new id."""
        raise NotImplementedError

    @abc.abstractmethod
    async def list(self) -> List[Trip]:
        """All trips, ascending by departure_time, ties broken by id."""
        raise NotImplementedError

    @abc.abstractmethod
    async def get(self, trip_id: int) -> Optional[Trip]:
        raise NotImplementedError

    @abc.abstractmethod
    async def conditional_update_seats(self, trip_id: int, expected_seats: int, new_seats: int) -> SeatUpdate:
        """Atomically set available_seats to new_seats if it still equals expected_seats."""
        raise NotImplementedError


class MemoryCarpoolStore(CarpoolStore):
    """Process-local store for development and tests."""

    def __init__(self):
        self._trips: Dict[int, Trip] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def create(self, fields: Mapping[str, Any]) -> Trip:
        async with self._lock:
            trip = Trip(
                id=next(self._ids),
                driver_name=fields["driver_name"],
                destination=fields["destination"],
                departure_time=_utc(fields["departure_time"]),
                available_seats=fields["available_seats"],
                seat_capacity=fields["available_seats"],
                notes=fields.get("notes"),
                created_at=datetime.now(timezone.utc),
            )
            self._trips[trip.id] = trip
        return trip

    async def list(self) -> List[Trip]:
        return sorted(self._trips.values(), key=lambda t: (t.departure_time, t.id))

    async def get(self, trip_id: int) -> Optional[Trip]:
        return self._trips.get(trip_id)

    async def conditional_update_seats(self, trip_id: int, expected_seats: int, new_seats: int) -> SeatUpdate:
        _check_transition(expected_seats, new_seats)
        async with self._lock:
            current = self._trips.get(trip_id)
            if current is None:
                return SeatUpdate(SeatUpdateStatus.NOT_FOUND)
            if current.available_seats != expected_seats:
                return SeatUpdate(SeatUpdateStatus.CONFLICT, current)
            updated = replace(current, available_seats=new_seats)
            self._trips[trip_id] = updated
        return SeatUpdate(SeatUpdateStatus.SUCCESS, updated)


_TRANSPORT_ERRORS = (OperationalError, InterfaceError, DisconnectionError, OSError)


class SqlCarpoolStore(CarpoolStore):
    """CarpoolStore over a SQLAlchemy async session factory."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        if session_factory is None:
            from carpool.db.session import async_session

            session_factory = async_session
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self):
        try:
            async with self.session_factory() as db:
                yield db
        except _TRANSPORT_ERRORS as exc:
            logger.exception("carpool store unreachable")
            raise TransportError("Carpool store is unavailable", cause=exc) from exc

    @staticmethod
    def _to_trip(row: Carpool) -> Trip:
        return Trip(
            id=row.id,
            driver_name=row.driver_name,
            destination=row.destination,
            departure_time=_utc(row.departure_time),
            available_seats=row.available_seats,
            seat_capacity=row.seat_capacity,
            notes=row.notes,
            created_at=_utc(row.created_at) if row.created_at else None,
        )

    async def create(self, fields: Mapping[str, Any]) -> Trip:
        row = Carpool(
            driver_name=fields["driver_name"],
            destination=fields["destination"],
            departure_time=_utc(fields["departure_time"]),
            available_seats=fields["available_seats"],
            seat_capacity=fields["available_seats"],
            notes=fields.get("notes"),
        )
        async with self._session() as db:
            async with db.begin():
                db.add(row)
            await db.refresh(row)
            return self._to_trip(row)

    async def list(self) -> List[Trip]:
        stmt = sa_select(Carpool).order_by(Carpool.departure_time.asc(), Carpool.id.asc())
        async with self._session() as db:
            res = await db.execute(stmt)
            return [self._to_trip(row) for row in res.scalars().all()]

    async def get(self, trip_id: int) -> Optional[Trip]:
        async with self._session() as db:
            row = await db.get(Carpool, trip_id)
            return self._to_trip(row) if row is not None else None

    async def conditional_update_seats(self, trip_id: int, expected_seats: int, new_seats: int) -> SeatUpdate:
        _check_transition(expected_seats, new_seats)
        upd = (
            sa_update(Carpool)
            .where(Carpool.id == trip_id)
            .where(Carpool.available_seats == expected_seats)
            .values(available_seats=new_seats)
            .execution_options(synchronize_session=False)
        )
        async with self._session() as db:
            async with db.begin():
                result = await db.execute(upd)
                row = await self._fetch(db, trip_id)
                trip = self._to_trip(row) if row is not None else None
            if result.rowcount == 1:
                return SeatUpdate(SeatUpdateStatus.SUCCESS, trip)
            if trip is None:
                return SeatUpdate(SeatUpdateStatus.NOT_FOUND)
            return SeatUpdate(SeatUpdateStatus.CONFLICT, trip)

    @staticmethod
    async def _fetch(db: AsyncSession, trip_id: int) -> Optional[Carpool]:
        res = await db.execute(sa_select(Carpool).where(Carpool.id == trip_id))
        return res.scalars().first()


def build_store(backend: Optional[str] = None) -> CarpoolStore:
    from carpool.config import settings

    backend = backend or settings.STORE_BACKEND
    if backend == "memory":
        return MemoryCarpoolStore()
    if backend == "sql":
        return SqlCarpoolStore()
    raise ValueError(f"Unknown STORE_BACKEND {backend!r}")

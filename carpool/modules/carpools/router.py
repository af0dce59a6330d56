from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from carpool.schemas.carpool import (
    CalendarDatesResponse,
    CarpoolCreateRequest,
    CarpoolResponse,
    ErrorDetail,
    JoinRequest,
    JoinResponse,
)
from carpool.services.carpools import CarpoolService
from carpool.services.errors import TransportError
from carpool.services.reservation import JoinStatus

router = APIRouter()


def get_carpool_service(request: Request) -> CarpoolService:
    return request.app.state.carpool_service


def _unavailable(kind: str, exc: TransportError) -> HTTPException:
    detail = ErrorDetail(
        type=kind,
        code="store_unavailable",
        message="Carpool service is unavailable. Please try again.",
        details=str(exc),
    )
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail.model_dump())


_JOIN_FAILURES = {
    JoinStatus.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Carpool not found."),
    JoinStatus.SEATS_EXHAUSTED: (status.HTTP_409_CONFLICT, "No seats available for this carpool."),
    JoinStatus.VERSION_CONFLICT: (
        status.HTTP_409_CONFLICT,
        "Seats changed while you were joining. Refresh and try again.",
    ),
}


@router.get("/", response_model=List[CarpoolResponse])
async def list_carpools(service: CarpoolService = Depends(get_carpool_service)):
    try:
        trips = await service.list_trips()
    except TransportError as exc:
        raise _unavailable("fetch", exc)
    return [CarpoolResponse.model_validate(t) for t in trips]


@router.post("/", response_model=CarpoolResponse, status_code=status.HTTP_201_CREATED)
async def create_carpool(req: CarpoolCreateRequest, service: CarpoolService = Depends(get_carpool_service)):
    try:
        result = await service.create_trip(req.model_dump())
    except TransportError as exc:
        raise _unavailable("create", exc)
    if not result.ok:
        detail = ErrorDetail(
            type="create",
            code="validation_error",
            message="Please correct the highlighted fields.",
            errors=result.errors,
        )
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail.model_dump())
    return CarpoolResponse.model_validate(result.trip)


@router.post("/{trip_id}/join", response_model=JoinResponse)
async def join_carpool(trip_id: int, req: JoinRequest, service: CarpoolService = Depends(get_carpool_service)):
    """Claim one seat. 409 means the seat count moved or the trip is full."""
    try:
        result = await service.join_trip(trip_id, req.observed_seats, refresh=req.refresh)
    except TransportError as exc:
        raise _unavailable("join", exc)
    if not result.ok:
        code, message = _JOIN_FAILURES[result.status]
        detail = ErrorDetail(type="join", code=result.status.value, message=message)
        raise HTTPException(status_code=code, detail=detail.model_dump())
    return JoinResponse(trip=CarpoolResponse.model_validate(result.trip), available_seats=result.new_seat_count)


@router.get("/calendar/dates", response_model=CalendarDatesResponse)
async def calendar_dates(service: CarpoolService = Depends(get_carpool_service)):
    try:
        dates = await service.dates_with_trips()
    except TransportError as exc:
        raise _unavailable("fetch", exc)
    return CalendarDatesResponse(dates=sorted(dates))


@router.get("/calendar/{day}", response_model=List[CarpoolResponse])
async def carpools_on_day(day: date, service: CarpoolService = Depends(get_carpool_service)):
    try:
        trips = await service.trips_on_date(day)
    except TransportError as exc:
        raise _unavailable("fetch", exc)
    return [CarpoolResponse.model_validate(t) for t in trips]

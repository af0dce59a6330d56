from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional, Union
from datetime import date, datetime


class CarpoolCreateRequest(BaseModel):
    # loose types on purpose: field rules live in the validation service
    driver_name: Optional[str] = None
    destination: Optional[str] = None
    departure_time: Optional[Union[datetime, str]] = None
    # raw value reaches validate(); null means the default seat count
    available_seats: Any = 4
    notes: Optional[str] = ""


class CarpoolResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    driver_name: str
    destination: str
    departure_time: datetime
    available_seats: int
    seat_capacity: int
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    is_full: bool


class JoinRequest(BaseModel):
    observed_seats: int = Field(..., description="Seat count the rider saw; acts as the version token")
    refresh: bool = Field(False, description="Re-read and retry once after a version conflict")


class JoinResponse(BaseModel):
    trip: CarpoolResponse
    available_seats: int
    message: str = "Successfully joined carpool!"


class CalendarDatesResponse(BaseModel):
    dates: List[date]


class ErrorDetail(BaseModel):
    type: str
    code: str
    message: str
    details: Optional[str] = None
    errors: Dict[str, str] = Field(default_factory=dict)

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from carpool.db.base import Base


class Carpool(Base):
    __tablename__ = "carpools"
    id = Column(Integer, primary_key=True)
    driver_name = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    departure_time = Column(DateTime(timezone=True), nullable=False)
    # seats left; only ever lowered through a conditional update
    available_seats = Column(Integer, nullable=False)
    seat_capacity = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("seat_capacity BETWEEN 1 AND 8", name="ck_carpools_seat_capacity"),
        CheckConstraint(
            "available_seats >= 0 AND available_seats <= seat_capacity",
            name="ck_carpools_available_seats",
        ),
        Index("ix_carpools_departure_id", "departure_time", "id"),
    )

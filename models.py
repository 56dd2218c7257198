from typing import List, Optional
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON
from sqlalchemy.types import TypeDecorator

BOOKED = "Booked"


class UtcDateTime(TypeDecorator):
    """Timezone-aware column that always hands back UTC instants."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        # SQLite drops the offset on the way out
        if value is not None:
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        return value


class Room(SQLModel, table=True):
    __tablename__ = "rooms"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    seats: int
    amenities: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    price_per_hour: float


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"

    id: Optional[int] = Field(default=None, primary_key=True)
    room_id: int = Field(foreign_key="rooms.id", index=True)
    customer_name: str = Field(index=True)
    date_start: datetime = Field(sa_column=Column(UtcDateTime, nullable=False))
    date_end: datetime = Field(sa_column=Column(UtcDateTime, nullable=False))
    status: str = Field(default=BOOKED)  # no other state is reachable

    def overlaps(self, start: datetime, end: datetime) -> bool:
        # Half-open [start, end): touching endpoints do not overlap
        return start < self.date_end and self.date_start < end

"""
Reservation service.

Holds the room registry, the booking validator/ledger and the read-only
projections built from them. Storage is reached only through the store
capabilities, so the same rules apply to every backend.
"""

import asyncio
import logging
import math
from collections import defaultdict
from datetime import datetime, timezone
from numbers import Real
from typing import Dict, List, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from exceptions import (
    BookingConflictError,
    InconsistentStateError,
    RoomNotFoundError,
    ValidationError,
)
from models import BOOKED, Booking, Room
from schemas import BookingRead, CustomerBooking, CustomerBookingDetail, RoomWithBookings
from stores import BookingStore, RoomStore

logger = logging.getLogger(__name__)

_instant = TypeAdapter(datetime)


def to_instant(value, field: str) -> datetime:
    """Parse a timestamp into an aware UTC instant; naive input is taken as UTC."""
    if value is None or value == "":
        raise ValidationError(field=field)
    try:
        instant = _instant.validate_python(value)
    except PydanticValidationError:
        raise ValidationError(f"{field} is not a valid timestamp", field=field)
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def _require_text(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field=field)
    return value


def _require_positive(value, field: str, integral: bool = False):
    if value is None:
        raise ValidationError(field=field)
    kind = int if integral else Real
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ValidationError(
            f"{field} must be a {'whole ' if integral else ''}number", field=field
        )
    if not math.isfinite(value):
        raise ValidationError(f"{field} must be finite", field=field)
    if value <= 0:
        raise ValidationError(f"{field} must be positive", field=field)
    return value


class ReservationService:

    def __init__(self, rooms: RoomStore, bookings: BookingStore):
        self.rooms = rooms
        self.bookings = bookings
        self._room_locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    # Room registry

    async def create_room(
        self,
        name: str,
        seats: int,
        amenities: List[str],
        price_per_hour: float,
    ) -> Room:
        _require_text(name, "name")
        _require_positive(seats, "seats", integral=True)
        _require_positive(price_per_hour, "price_per_hour")
        if amenities is None:
            raise ValidationError(field="amenities")
        if not isinstance(amenities, (list, tuple)) or not all(
            isinstance(a, str) and a.strip() for a in amenities
        ):
            raise ValidationError("amenities must be a list of names", field="amenities")

        room = await self.rooms.add(
            Room(
                name=name,
                seats=seats,
                amenities=list(amenities),
                price_per_hour=price_per_hour,
            )
        )
        logger.info(f"Room {room.id} ({room.name}) created")
        return room

    async def get_room(self, room_id: int) -> Room:
        room = await self.rooms.get(room_id)
        if room is None:
            logger.warning(f"Room {room_id} not found")
            raise RoomNotFoundError(room_id)
        return room

    async def list_rooms(self) -> List[Room]:
        return await self.rooms.list_all()

    # Booking validator & ledger

    async def create_booking(
        self,
        customer_name: str,
        date_start,
        date_end,
        room_id: Optional[int],
    ) -> Booking:
        """
        Book ``room_id`` for ``[date_start, date_end)``.

        Raises ValidationError for missing or malformed fields, RoomNotFoundError
        for an unknown room and BookingConflictError when the interval overlaps
        an existing booking of the same room. Intervals that only touch at an
        endpoint do not overlap.
        """
        _require_text(customer_name, "customer_name")
        start = to_instant(date_start, "date_start")
        end = to_instant(date_end, "date_end")
        if room_id is None or (isinstance(room_id, int) and room_id <= 0):
            raise ValidationError(field="room_id")
        if end <= start:
            raise ValidationError("date_end must be after date_start", field="date_end")

        # Rooms are never deleted; resolve first so unknown ids never get a lock
        room = await self.get_room(room_id)

        # Check and append are one unit per room
        async with self._room_locks[room.id]:
            for existing in await self.bookings.for_room(room.id):
                if existing.overlaps(start, end):
                    logger.warning(
                        f"Booking for room {room_id} by {customer_name} conflicts "
                        f"with booking {existing.id}"
                    )
                    raise BookingConflictError(room_id, existing.id)

            booking = await self.bookings.add(
                Booking(
                    room_id=room.id,
                    customer_name=customer_name,
                    date_start=start,
                    date_end=end,
                    status=BOOKED,
                )
            )

        logger.info(f"Booking {booking.id} created for room {room_id} by {customer_name}")
        return booking

    async def list_bookings(self) -> List[Booking]:
        return await self.bookings.list_all()

    async def bookings_for_room(self, room_id: int) -> List[Booking]:
        return await self.bookings.for_room(room_id)

    async def bookings_for_customer(self, customer_name: str) -> List[Booking]:
        return await self.bookings.for_customer(customer_name)

    # Query projections

    async def _with_bookings(self, room: Room) -> RoomWithBookings:
        bookings = await self.bookings_for_room(room.id)
        return RoomWithBookings(
            room_id=room.id,
            room_name=room.name,
            seats=room.seats,
            amenities=room.amenities,
            price_per_hour=room.price_per_hour,
            bookings=[BookingRead.from_booking(b) for b in bookings],
        )

    async def rooms_with_bookings(self) -> List[RoomWithBookings]:
        return [await self._with_bookings(room) for room in await self.list_rooms()]

    async def room_with_bookings(self, room_id: int) -> RoomWithBookings:
        return await self._with_bookings(await self.get_room(room_id))

    async def _room_names(self, bookings: List[Booking]) -> Dict[int, str]:
        names = {room.id: room.name for room in await self.list_rooms()}
        for booking in bookings:
            if booking.room_id not in names:
                logger.error(
                    f"Booking {booking.id} references unknown room {booking.room_id}"
                )
                raise InconsistentStateError(booking.id, booking.room_id)
        return names

    async def customers_with_bookings(self) -> List[CustomerBooking]:
        bookings = await self.list_bookings()
        names = await self._room_names(bookings)
        return [
            CustomerBooking(
                customer_name=b.customer_name,
                room_name=names[b.room_id],
                date_start=b.date_start,
                date_end=b.date_end,
            )
            for b in bookings
        ]

    async def customer_booking_history(self, customer_name: str) -> List[CustomerBookingDetail]:
        bookings = await self.bookings_for_customer(customer_name)
        names = await self._room_names(bookings)
        return [
            CustomerBookingDetail(
                room_name=names[b.room_id],
                date_start=b.date_start,
                date_end=b.date_end,
                booking_id=b.id,
                status=b.status,
            )
            for b in bookings
        ]

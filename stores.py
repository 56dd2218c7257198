"""
Room and booking stores.

The service only talks to the abstract ``RoomStore`` / ``BookingStore``
capabilities. Two implementations exist: plain in-memory collections and an
async SQLAlchemy session per operation.
"""

import itertools
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from models import Booking, Room


class RoomStore(ABC):
    """Storage capability for rooms."""

    @abstractmethod
    async def add(self, room: Room) -> Room:
        """Persist a new room and return it with its id assigned."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, room_id: int) -> Optional[Room]:
        raise NotImplementedError

    @abstractmethod
    async def list_all(self) -> List[Room]:
        """All rooms in insertion order."""
        raise NotImplementedError


class BookingStore(ABC):
    """Storage capability for the append-only booking ledger."""

    @abstractmethod
    async def add(self, booking: Booking) -> Booking:
        """Append a booking and return it with its id assigned."""
        raise NotImplementedError

    @abstractmethod
    async def list_all(self) -> List[Booking]:
        raise NotImplementedError

    @abstractmethod
    async def for_room(self, room_id: int) -> List[Booking]:
        raise NotImplementedError

    @abstractmethod
    async def for_customer(self, customer_name: str) -> List[Booking]:
        raise NotImplementedError


class InMemoryRoomStore(RoomStore):

    def __init__(self) -> None:
        self._rooms: Dict[int, Room] = {}
        self._ids = itertools.count(1)

    async def add(self, room: Room) -> Room:
        room.id = next(self._ids)
        self._rooms[room.id] = room
        return room

    async def get(self, room_id: int) -> Optional[Room]:
        return self._rooms.get(room_id)

    async def list_all(self) -> List[Room]:
        return list(self._rooms.values())


class InMemoryBookingStore(BookingStore):

    def __init__(self) -> None:
        self._bookings: List[Booking] = []
        self._by_room: Dict[int, List[Booking]] = defaultdict(list)
        self._ids = itertools.count(1)

    async def add(self, booking: Booking) -> Booking:
        # No await between the two appends, so readers see both or neither
        booking.id = next(self._ids)
        self._bookings.append(booking)
        self._by_room[booking.room_id].append(booking)
        return booking

    async def list_all(self) -> List[Booking]:
        return list(self._bookings)

    async def for_room(self, room_id: int) -> List[Booking]:
        return list(self._by_room.get(room_id, ()))

    async def for_customer(self, customer_name: str) -> List[Booking]:
        return [b for b in self._bookings if b.customer_name == customer_name]


class SqlRoomStore(RoomStore):

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def add(self, room: Room) -> Room:
        async with self._session_factory() as session:
            session.add(room)
            await session.commit()
            await session.refresh(room)
            return room

    async def get(self, room_id: int) -> Optional[Room]:
        async with self._session_factory() as session:
            return await session.get(Room, room_id)

    async def list_all(self) -> List[Room]:
        async with self._session_factory() as session:
            result = await session.execute(select(Room).order_by(Room.id))
            return list(result.scalars().all())


class SqlBookingStore(BookingStore):

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def add(self, booking: Booking) -> Booking:
        async with self._session_factory() as session:
            session.add(booking)
            await session.commit()
            await session.refresh(booking)
            return booking

    async def _select(self, statement) -> List[Booking]:
        async with self._session_factory() as session:
            result = await session.execute(statement.order_by(Booking.id))
            return list(result.scalars().all())

    async def list_all(self) -> List[Booking]:
        return await self._select(select(Booking))

    async def for_room(self, room_id: int) -> List[Booking]:
        return await self._select(select(Booking).where(Booking.room_id == room_id))

    async def for_customer(self, customer_name: str) -> List[Booking]:
        return await self._select(
            select(Booking).where(Booking.customer_name == customer_name)
        )

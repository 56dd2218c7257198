from datetime import datetime
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # snake_case in Python, camelCase on the wire
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# Request bodies

class RoomCreate(CamelModel):
    name: str = Field(validation_alias=AliasChoices("name", "roomName"))
    seats: int
    amenities: List[str]
    price_per_hour: float = Field(gt=0, allow_inf_nan=False)


class BookingCreate(CamelModel):
    customer_name: str
    date_start: datetime
    date_end: datetime
    room_id: int = Field(gt=0, validation_alias=AliasChoices("roomId", "roomID"))


# Responses use the identifier names existing clients read: roomID, bookingID

class RoomCreated(CamelModel):
    message: str = "Room created successfully"
    room_id: int = Field(alias="roomID")


class BookingCreated(CamelModel):
    message: str = "Room booked successfully"
    booking_id: int = Field(alias="bookingID")


class BookingRead(CamelModel):
    booking_id: int = Field(alias="bookingID")
    room_id: int = Field(alias="roomID")
    customer_name: str
    date_start: datetime
    date_end: datetime
    status: str

    @classmethod
    def from_booking(cls, booking) -> "BookingRead":
        return cls(
            booking_id=booking.id,
            room_id=booking.room_id,
            customer_name=booking.customer_name,
            date_start=booking.date_start,
            date_end=booking.date_end,
            status=booking.status,
        )


class RoomWithBookings(CamelModel):
    room_id: int = Field(alias="roomID")
    room_name: str = Field(alias="roomName")
    seats: int
    amenities: List[str]
    price_per_hour: float
    bookings: List[BookingRead]


class CustomerBooking(CamelModel):
    customer_name: str
    room_name: str
    date_start: datetime
    date_end: datetime


class CustomerBookingDetail(CamelModel):
    room_name: str
    date_start: datetime
    date_end: datetime
    booking_id: int = Field(alias="bookingID")
    status: str

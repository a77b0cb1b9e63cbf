"""Room and reservation domain models."""
from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_serializer, field_validator, model_validator

from .errors import ReservationNotFound


class RoomStatus(str, Enum):
    AVAILABLE = "Available"
    FULL = "Full"


def interval(on_date: dt.date, start_time: dt.time, duration: int) -> tuple[dt.datetime, dt.datetime]:
    """Return the half-open ``[start, end)`` window of a booking.

    Raises ``ValueError`` when the window does not fit the calendar.
    """

    try:
        start = dt.datetime.combine(on_date, start_time)
        return start, start + dt.timedelta(hours=duration)
    except OverflowError as exc:
        raise ValueError("booking window falls outside the supported calendar") from exc


class ReservationDetails(BaseModel):
    """Fields a requester supplies for a booking."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    room_number: int = Field(..., alias="roomNumber")
    date: dt.date
    start_time: dt.time = Field(..., alias="startTime")
    duration: PositiveInt

    @field_validator("start_time")
    @classmethod
    def _whole_minutes(cls, value: dt.time) -> dt.time:
        if value.tzinfo is not None:
            raise ValueError("start time must not carry a timezone")
        if value.second or value.microsecond:
            raise ValueError("start time must be given as HH:MM")
        return value

    @model_validator(mode="after")
    def _window_fits_calendar(self) -> "ReservationDetails":
        interval(self.date, self.start_time, self.duration)
        return self

    @field_serializer("start_time")
    def _serialize_start_time(self, value: dt.time) -> str:
        return value.strftime("%H:%M")


class Reservation(ReservationDetails):
    """One booking of a room. Immutable once created."""

    id: str = Field(default_factory=lambda: uuid4().hex)

    @property
    def start(self) -> dt.datetime:
        return interval(self.date, self.start_time, self.duration)[0]

    @property
    def end(self) -> dt.datetime:
        return interval(self.date, self.start_time, self.duration)[1]

    def overlaps(self, start: dt.datetime, end: dt.datetime) -> bool:
        return not (end <= self.start or start >= self.end)


class Room(BaseModel):
    """A bookable room.

    ``capacity`` is the number of reservations the room can still accept; it
    moves by exactly one on every accepted reservation and every cancellation.
    """

    number: int
    capacity: int
    reservations: List[Reservation] = Field(default_factory=list)

    def is_available(self, start_time: dt.time, duration: int, on_date: dt.date) -> bool:
        start, end = interval(on_date, start_time, duration)
        return all(not reservation.overlaps(start, end) for reservation in self.reservations)

    def first_conflict(self, start_time: dt.time, duration: int, on_date: dt.date) -> Optional[Reservation]:
        start, end = interval(on_date, start_time, duration)
        return next((r for r in self.reservations if r.overlaps(start, end)), None)

    def add_reservation(self, reservation: Reservation) -> None:
        # No validation here: callers check capacity and availability first.
        self.reservations.append(reservation)
        self.capacity -= 1

    def get_status(self) -> RoomStatus:
        return RoomStatus.FULL if self.capacity <= 0 else RoomStatus.AVAILABLE

    def find_reservation(self, reservation_id: str) -> Optional[Reservation]:
        return next((r for r in self.reservations if r.id == reservation_id), None)

    def cancel_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.find_reservation(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id, room_number=self.number)
        self.reservations.remove(reservation)
        self.capacity += 1
        return reservation

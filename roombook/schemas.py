"""Pydantic schemas for the reservation API and the rendered views."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .models import Reservation, ReservationDetails, RoomStatus


class ReservationCreate(ReservationDetails):
    pass


class ReservationRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    room_number: int = Field(..., alias="roomNumber")
    date: str
    start_time: str = Field(..., alias="startTime")
    duration: int

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "ReservationRead":
        return cls.model_validate(reservation.model_dump(mode="json"))


class ReservationCreated(BaseModel):
    message: str = "Reservation successful!"
    reservation: ReservationRead


class RoomRow(BaseModel):
    """One line of the room status table."""

    number: int
    capacity: int
    status: RoomStatus


class ReservationLine(BaseModel):
    """One entry of the reservation list, with its cancel action."""

    id: str
    room_number: int
    summary: str
    cancel_url: str


class RoomRead(BaseModel):
    number: int
    capacity: int
    status: RoomStatus
    reservations: List[ReservationRead]


class AvailabilityRead(BaseModel):
    room_number: int
    available: bool

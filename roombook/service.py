"""Booking service: validation, capacity accounting and persistence of reservations."""
from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from .errors import BookingError, MalformedInput, RoomFull, RoomNotFound, SlotConflict
from .models import Reservation, Room
from .renderer import Renderer
from .schemas import ReservationCreate
from .store import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_ROOMS = (
    (101, 30),
    (102, 25),
    (103, 0),
    (104, 10),
    (105, 0),
    (106, 19),
)


def default_rooms() -> List[Room]:
    return [Room(number=number, capacity=capacity) for number, capacity in DEFAULT_ROOMS]


def parse_request(name: Any, room_number: Any, date: Any, start_time: Any, duration: Any) -> ReservationCreate:
    """Validate raw submission values, raising ``MalformedInput`` on any bad field."""

    try:
        return ReservationCreate.model_validate(
            {
                "name": name,
                "roomNumber": room_number,
                "date": date,
                "startTime": start_time,
                "duration": duration,
            }
        )
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]) or "request", "message": error["msg"]}
            for error in exc.errors()
        ]
        raise MalformedInput("Reservation request is malformed", errors=errors) from exc


class BookingService:
    """Owns the room collection and serialises every read and mutation on it.

    A reservation request is checked and applied under one lock, then the new
    state is saved to the store and pushed to the renderer before the lock is
    released.
    """

    def __init__(self, rooms: Iterable[Room], store: SnapshotStore, renderer: Renderer) -> None:
        self._rooms: List[Room] = list(rooms)
        numbers = [room.number for room in self._rooms]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Room numbers must be unique")
        self.store = store
        self.renderer = renderer
        self._lock = threading.RLock()

    @classmethod
    def from_store(cls, store: SnapshotStore, renderer: Renderer) -> "BookingService":
        rooms = store.load()
        seeded = rooms is None
        if seeded:
            logger.info("No stored snapshot, seeding %d default rooms", len(DEFAULT_ROOMS))
            rooms = default_rooms()
        service = cls(rooms, store, renderer)
        if seeded:
            store.save(service._rooms)
        service.refresh_views()
        return service

    @property
    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms)

    @property
    def reservations(self) -> List[Reservation]:
        with self._lock:
            return [reservation for room in self._rooms for reservation in room.reservations]

    def get_room(self, room_number: int) -> Optional[Room]:
        with self._lock:
            return next((room for room in self._rooms if room.number == room_number), None)

    def _require_room(self, room_number: int) -> Room:
        room = self.get_room(room_number)
        if room is None:
            raise RoomNotFound(room_number)
        return room

    def is_available(self, room_number: int, on_date: dt.date, start_time: dt.time, duration: int) -> bool:
        with self._lock:
            room = self._require_room(room_number)
            try:
                return room.is_available(start_time, duration, on_date)
            except ValueError as exc:
                raise MalformedInput(str(exc), errors=[{"field": "duration", "message": str(exc)}]) from exc

    def reserve(self, name: Any, room_number: Any, date: Any, start_time: Any, duration: Any) -> Reservation:
        try:
            details = parse_request(name, room_number, date, start_time, duration)
            with self._lock:
                reservation = self._reserve(details)
        except BookingError as exc:
            logger.warning("Rejected reservation for room %s: %s (%s)", room_number, exc.message, exc.code)
            raise
        logger.info(
            "Reserved room %s for %s on %s %s (%dh) id=%s",
            reservation.room_number,
            reservation.name,
            reservation.date,
            reservation.start_time.strftime("%H:%M"),
            reservation.duration,
            reservation.id,
        )
        return reservation

    def _reserve(self, details: ReservationCreate) -> Reservation:
        room = self._require_room(details.room_number)
        if room.capacity <= 0:
            raise RoomFull(room.number)
        conflict = room.first_conflict(details.start_time, details.duration, details.date)
        if conflict is not None:
            raise SlotConflict(room.number, conflicting_id=conflict.id)

        reservation = Reservation(**details.model_dump())
        room.add_reservation(reservation)
        try:
            self.store.save(self._rooms)
        except Exception:
            room.cancel_reservation(reservation.id)
            raise
        self._render()
        return reservation

    def cancel(self, room_number: int, reservation_id: str) -> Reservation:
        try:
            with self._lock:
                room = self._require_room(room_number)
                previous = list(room.reservations)
                reservation = room.cancel_reservation(reservation_id)
                try:
                    self.store.save(self._rooms)
                except Exception:
                    room.reservations = previous
                    room.capacity -= 1
                    raise
                self._render()
        except BookingError as exc:
            logger.warning("Rejected cancellation in room %s: %s (%s)", room_number, exc.message, exc.code)
            raise
        logger.info("Cancelled reservation %s in room %s", reservation_id, room_number)
        return reservation

    def refresh_views(self) -> None:
        with self._lock:
            self._render()

    def _render(self) -> None:
        self.renderer.refresh(list(self._rooms), [r for room in self._rooms for r in room.reservations])

"""Rendered views of the room collection."""
from __future__ import annotations

import threading
from typing import List, Optional, Protocol, Sequence

from cachetools import TTLCache

from .models import Reservation, Room
from .schemas import ReservationLine, RoomRow

ROOM_TABLE = "room-table"
RESERVATION_LIST = "reservation-list"


class Renderer(Protocol):
    def refresh(self, rooms: Sequence[Room], reservations: Sequence[Reservation]) -> None:
        ...


def summarize(reservation: Reservation) -> str:
    unit = "hour" if reservation.duration == 1 else "hours"
    return (
        f"{reservation.name} - Room {reservation.room_number} on {reservation.date.isoformat()} "
        f"{reservation.start_time:%H:%M} for {reservation.duration} {unit}"
    )


def cancel_url(reservation: Reservation) -> str:
    return f"/rooms/{reservation.room_number}/reservations/{reservation.id}"


class ViewRenderer:
    """Builds the room status table and the reservation list.

    Views are kept in a TTL cache; once they expire the getters return
    ``None`` and the caller is expected to trigger a fresh render.
    """

    def __init__(self, ttl: int, maxsize: int = 8) -> None:
        self._views: TTLCache[str, list] = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

    def refresh(self, rooms: Sequence[Room], reservations: Sequence[Reservation]) -> None:
        table = [RoomRow(number=room.number, capacity=room.capacity, status=room.get_status()) for room in rooms]
        lines = [
            ReservationLine(
                id=reservation.id,
                room_number=reservation.room_number,
                summary=summarize(reservation),
                cancel_url=cancel_url(reservation),
            )
            for reservation in reservations
        ]
        with self._lock:
            self._views[ROOM_TABLE] = table
            self._views[RESERVATION_LIST] = lines

    def room_table(self) -> Optional[List[RoomRow]]:
        with self._lock:
            return self._views.get(ROOM_TABLE)

    def reservation_list(self) -> Optional[List[ReservationLine]]:
        with self._lock:
            return self._views.get(RESERVATION_LIST)

    def clear(self) -> None:
        with self._lock:
            self._views.clear()

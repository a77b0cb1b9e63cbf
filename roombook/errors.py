"""Error taxonomy for reservation requests."""
from __future__ import annotations

from typing import Any, Optional

from fastapi import status

USER_FACING_FAILURE = "Room is already booked or at full capacity."


class BookingError(Exception):
    """Base class for rejected reserve/cancel requests.

    ``code`` identifies the cause for API clients and tests, ``status_code``
    is the HTTP status the API layer answers with.
    """

    code = "booking_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_payload(self, collapse: bool = False) -> dict[str, Any]:
        detail = USER_FACING_FAILURE if collapse else self.message
        return {"detail": detail, "reason": self.code}


class RoomNotFound(BookingError):
    code = "room_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, room_number: int) -> None:
        super().__init__(f"Room {room_number} does not exist", room_number=room_number)


class RoomFull(BookingError):
    code = "room_full"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, room_number: int) -> None:
        super().__init__(f"Room {room_number} has no remaining capacity", room_number=room_number)


class SlotConflict(BookingError):
    code = "slot_conflict"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, room_number: int, conflicting_id: Optional[str] = None) -> None:
        super().__init__(
            f"Room {room_number} is already booked in the requested window",
            room_number=room_number,
            conflicting_id=conflicting_id,
        )


class MalformedInput(BookingError):
    code = "malformed_input"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None) -> None:
        super().__init__(message, errors=errors or [])

    def to_payload(self, collapse: bool = False) -> dict[str, Any]:
        payload = super().to_payload(collapse)
        payload["errors"] = self.context["errors"]
        return payload


class ReservationNotFound(BookingError):
    code = "reservation_not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, reservation_id: str, room_number: Optional[int] = None) -> None:
        super().__init__(
            f"Reservation {reservation_id} not found",
            reservation_id=reservation_id,
            room_number=room_number,
        )


class SnapshotCorrupted(Exception):
    """Raised when a stored snapshot cannot be decoded into rooms."""

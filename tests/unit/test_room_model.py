"""Unit tests for the room and reservation models."""
import datetime as dt
import itertools

import pytest
from pydantic import ValidationError

from roombook.errors import ReservationNotFound
from roombook.models import Reservation, Room, RoomStatus

DAY = dt.date(2024, 6, 1)


def make_reservation(start_hour: int, duration: int, name: str = "Alice", on_date: dt.date = DAY) -> Reservation:
    return Reservation(
        name=name,
        room_number=101,
        date=on_date,
        start_time=dt.time(start_hour, 0),
        duration=duration,
    )


class TestReservation:
    """Test the reservation value record."""

    def test_interval_is_start_plus_duration(self):
        reservation = make_reservation(10, 2)

        assert reservation.start == dt.datetime(2024, 6, 1, 10, 0)
        assert reservation.end == dt.datetime(2024, 6, 1, 12, 0)

    def test_reservation_is_immutable(self):
        reservation = make_reservation(10, 2)

        with pytest.raises(ValidationError):
            reservation.duration = 5

    def test_each_reservation_gets_unique_id(self):
        first = make_reservation(10, 2)
        second = make_reservation(10, 2)

        assert first.id != second.id
        assert first != second

    def test_accepts_aliased_string_fields(self):
        reservation = Reservation.model_validate(
            {"name": "Bob", "roomNumber": "102", "date": "2024-06-01", "startTime": "09:30", "duration": "3"}
        )

        assert reservation.room_number == 102
        assert reservation.start_time == dt.time(9, 30)
        assert reservation.duration == 3

    @pytest.mark.parametrize("duration", [0, -1, "abc", 1.5])
    def test_rejects_invalid_duration(self, duration):
        with pytest.raises(ValidationError):
            Reservation(name="Alice", room_number=101, date=DAY, start_time=dt.time(10), duration=duration)

    def test_rejects_seconds_in_start_time(self):
        with pytest.raises(ValidationError):
            Reservation(name="Alice", room_number=101, date=DAY, start_time="10:00:30", duration=1)

    @pytest.mark.parametrize("on_date,duration", [(DAY, 10**9), (dt.date(9999, 12, 31), 2)])
    def test_rejects_window_past_calendar(self, on_date, duration):
        with pytest.raises(ValidationError):
            Reservation(name="Alice", room_number=101, date=on_date, start_time=dt.time(23), duration=duration)

    def test_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            Reservation(name="   ", room_number=101, date=DAY, start_time=dt.time(10), duration=1)

    def test_start_time_serializes_as_hours_and_minutes(self):
        payload = make_reservation(10, 2).model_dump(mode="json", by_alias=True)

        assert payload["startTime"] == "10:00"
        assert payload["date"] == "2024-06-01"
        assert payload["roomNumber"] == 101


class TestRoomAvailability:
    """Test overlap detection on a room."""

    def test_empty_room_is_available(self, single_room):
        assert single_room.is_available(dt.time(10), 2, DAY) is True

    @pytest.mark.parametrize(
        "a0,a1,b0,b1",
        [
            (a0, a1, b0, b1)
            for a0, a1 in itertools.combinations(range(8, 14), 2)
            for b0, b1 in [(10, 12)]
        ],
    )
    def test_rejects_exactly_on_true_overlap(self, single_room, a0, a1, b0, b1):
        single_room.add_reservation(make_reservation(b0, b1 - b0))

        overlapping = a0 < b1 and b0 < a1
        assert single_room.is_available(dt.time(a0), a1 - a0, DAY) is (not overlapping)

    def test_touching_intervals_do_not_overlap(self, single_room):
        single_room.add_reservation(make_reservation(10, 2))

        assert single_room.is_available(dt.time(12), 1, DAY) is True
        assert single_room.is_available(dt.time(8), 2, DAY) is True

    def test_same_time_on_another_day_is_available(self, single_room):
        single_room.add_reservation(make_reservation(10, 2))

        assert single_room.is_available(dt.time(10), 2, dt.date(2024, 6, 2)) is True

    def test_overlap_across_midnight(self, single_room):
        single_room.add_reservation(make_reservation(23, 2))

        assert single_room.is_available(dt.time(0, 30), 1, dt.date(2024, 6, 2)) is False
        assert single_room.is_available(dt.time(1), 1, dt.date(2024, 6, 2)) is True

    def test_first_conflict_returns_overlapping_reservation(self, single_room):
        existing = make_reservation(10, 2)
        single_room.add_reservation(existing)

        assert single_room.first_conflict(dt.time(11), 1, DAY) == existing
        assert single_room.first_conflict(dt.time(12), 1, DAY) is None


class TestRoomCapacity:
    """Test capacity accounting on add and cancel."""

    def test_add_reservation_decrements_capacity(self, single_room):
        reservation = make_reservation(10, 2)
        single_room.add_reservation(reservation)

        assert single_room.capacity == 29
        assert single_room.reservations == [reservation]

    def test_add_reservation_does_not_validate(self):
        room = Room(number=103, capacity=0)
        room.add_reservation(make_reservation(10, 2))

        assert room.capacity == -1

    def test_reservations_keep_insertion_order(self, single_room):
        later = make_reservation(15, 1)
        earlier = make_reservation(9, 1)
        single_room.add_reservation(later)
        single_room.add_reservation(earlier)

        assert single_room.reservations == [later, earlier]

    def test_cancel_reservation_restores_capacity(self, single_room):
        reservation = make_reservation(10, 2)
        single_room.add_reservation(reservation)

        removed = single_room.cancel_reservation(reservation.id)

        assert removed == reservation
        assert single_room.capacity == 30
        assert single_room.reservations == []

    def test_cancel_removes_only_matching_id(self, single_room):
        first = make_reservation(10, 1, name="Twin")
        second = make_reservation(14, 1, name="Twin")
        single_room.add_reservation(first)
        single_room.add_reservation(second)

        single_room.cancel_reservation(second.id)

        assert single_room.reservations == [first]

    def test_cancel_unknown_reservation_leaves_capacity_unchanged(self, single_room):
        single_room.add_reservation(make_reservation(10, 2))

        with pytest.raises(ReservationNotFound):
            single_room.cancel_reservation("missing")

        assert single_room.capacity == 29
        assert len(single_room.reservations) == 1

    @pytest.mark.parametrize("capacity,expected", [(30, RoomStatus.AVAILABLE), (1, RoomStatus.AVAILABLE), (0, RoomStatus.FULL), (-1, RoomStatus.FULL)])
    def test_status_follows_capacity(self, capacity, expected):
        assert Room(number=1, capacity=capacity).get_status() is expected

    def test_find_reservation(self, single_room):
        reservation = make_reservation(10, 2)
        single_room.add_reservation(reservation)

        assert single_room.find_reservation(reservation.id) is reservation
        assert single_room.find_reservation("nope") is None

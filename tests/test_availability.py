"""Tests for guest room availability."""

from datetime import date

import pytest

from parsonage.constants import BookingStatus, RoomKind, RoomStatus
from parsonage.exceptions import InvalidRangeError
from parsonage.services.availability import BookingAvailabilityService

from .factories import make_booking, make_guest_room, make_room


@pytest.fixture
def service():
    return BookingAvailabilityService()


@pytest.fixture
def suite():
    return make_guest_room(id=10, number='G1')


@pytest.fixture
def confirmed(suite):
    return make_booking(id=1, room_id=suite.id, check_in=date(2024, 6, 10), check_out=date(2024, 6, 15))


class TestAvailableRooms:

    def test_overlapping_request_is_blocked(self, service, suite, confirmed):
        assert service.available_rooms(date(2024, 6, 12), date(2024, 6, 14), [suite], [confirmed]) == []

    def test_checkout_day_is_free(self, service, suite, confirmed):
        assert service.available_rooms(date(2024, 6, 15), date(2024, 6, 20), [suite], [confirmed]) == [suite]

    def test_stay_ending_on_checkin_day_is_free(self, service, suite, confirmed):
        assert service.available_rooms(date(2024, 6, 5), date(2024, 6, 10), [suite], [confirmed]) == [suite]

    @pytest.mark.parametrize('status', [BookingStatus.PENDING, BookingStatus.CANCELLED, BookingStatus.CHECKED_OUT])
    def test_inactive_bookings_never_block(self, service, suite, status):
        booking = make_booking(room_id=suite.id, status=status)
        assert service.available_rooms(date(2024, 6, 12), date(2024, 6, 14), [suite], [booking]) == [suite]

    def test_checked_in_booking_blocks(self, service, suite):
        booking = make_booking(room_id=suite.id, status=BookingStatus.CHECKED_IN)
        assert service.available_rooms(date(2024, 6, 12), date(2024, 6, 14), [suite], [booking]) == []

    def test_maintenance_rooms_are_excluded(self, service):
        room = make_guest_room(status=RoomStatus.MAINTENANCE)
        assert service.available_rooms(date(2024, 6, 12), date(2024, 6, 14), [room], []) == []

    def test_rooms_keep_input_order_and_kind_filter(self, service, suite, confirmed):
        other = make_guest_room(id=11, number='G2')
        long_term = make_room(id=1, status=RoomStatus.VACANT)
        rooms = [long_term, other, suite]

        assert service.available_rooms(date(2024, 6, 16), date(2024, 6, 18), rooms, [confirmed]) == rooms
        assert service.available_rooms(
            date(2024, 6, 12), date(2024, 6, 14), rooms, [confirmed], kind=RoomKind.GUEST,
        ) == [other]

    def test_booking_on_another_room_does_not_block(self, service, suite):
        booking = make_booking(room_id=99)
        assert service.available_rooms(date(2024, 6, 12), date(2024, 6, 14), [suite], [booking]) == [suite]

    def test_zero_night_request_is_rejected(self, service, suite):
        with pytest.raises(InvalidRangeError):
            service.available_rooms(date(2024, 6, 12), date(2024, 6, 12), [suite], [])


class TestConflictsAndMovements:

    def test_conflicts_for_pending_booking(self, service, suite, confirmed):
        pending = make_booking(id=2, room_id=suite.id, check_in=date(2024, 6, 14), check_out=date(2024, 6, 16),
                               status=BookingStatus.PENDING)
        adjacent = make_booking(id=3, room_id=suite.id, check_in=date(2024, 6, 16), check_out=date(2024, 6, 18))

        assert service.conflicts_for(pending, [confirmed, pending, adjacent]) == [confirmed]

    def test_is_available_can_ignore_the_booking_itself(self, service, suite, confirmed):
        assert not service.is_available(suite, date(2024, 6, 10), date(2024, 6, 15), [confirmed])
        assert service.is_available(suite, date(2024, 6, 10), date(2024, 6, 15), [confirmed],
                                    exclude_booking_id=confirmed.id)

    def test_arrivals_and_departures(self, service, suite):
        arriving = make_booking(id=1, room_id=suite.id, check_in=date(2024, 6, 11), check_out=date(2024, 6, 13))
        pending = make_booking(id=2, room_id=suite.id, check_in=date(2024, 6, 11), check_out=date(2024, 6, 12),
                               status=BookingStatus.PENDING)
        leaving = make_booking(id=3, room_id=11, check_in=date(2024, 6, 8), check_out=date(2024, 6, 11),
                               status=BookingStatus.CHECKED_IN)
        bookings = [arriving, pending, leaving]

        assert service.arrivals_on(date(2024, 6, 11), bookings) == [arriving]
        assert service.departures_on(date(2024, 6, 11), bookings) == [leaving]

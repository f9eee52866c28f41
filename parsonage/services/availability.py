"""
Guest room availability.

A room is free for a requested stay when none of its Confirmed or
Checked In bookings overlaps the request and it is not under maintenance.
Pending, Cancelled and Checked Out bookings never block a room.

The scan is rooms x bookings, which suits a property with a handful of
rooms. Index bookings by room before calling this for a large fleet.
"""

from parsonage.constants import ACTIVE_BOOKING_STATUSES, BookingStatus, RoomStatus

from .dates import as_date, intervals_overlap, nights_between


class BookingAvailabilityService:
    """
    Usage:
        service = BookingAvailabilityService()
        free = service.available_rooms(date(2024, 6, 12), date(2024, 6, 14), rooms, bookings)
    """

    def available_rooms(self, check_in, check_out, rooms, bookings, kind=None):
        """
        Rooms with no active booking overlapping [check_in, check_out).

        Args:
            check_in, check_out: requested stay (check_out exclusive)
            rooms: Room snapshots, returned in this order
            bookings: Booking snapshots for any rooms
            kind: optional RoomKind to restrict the candidates

        Raises:
            InvalidRangeError: when the request covers zero or negative nights
        """
        nights_between(check_in, check_out)

        available = []
        for room in rooms:
            if kind is not None and room.kind != kind:
                continue
            if room.status == RoomStatus.MAINTENANCE:
                continue
            if self._first_blocking(room.id, check_in, check_out, bookings) is None:
                available.append(room)
        return available

    def is_available(self, room, check_in, check_out, bookings, exclude_booking_id=None):
        nights_between(check_in, check_out)
        if room.status == RoomStatus.MAINTENANCE:
            return False
        return self._first_blocking(
            room.id, check_in, check_out, bookings, exclude_booking_id
        ) is None

    def conflicts_for(self, booking, bookings):
        """Active bookings on the same room whose stay overlaps `booking`."""
        return [
            other for other in bookings
            if other.id != booking.id
            and other.room_id == booking.room_id
            and other.status in ACTIVE_BOOKING_STATUSES
            and intervals_overlap(booking.check_in, booking.check_out, other.check_in, other.check_out)
        ]

    def arrivals_on(self, day, bookings):
        """Confirmed bookings checking in on `day`."""
        day = as_date(day)
        return [
            booking for booking in bookings
            if booking.status == BookingStatus.CONFIRMED and booking.check_in == day
        ]

    def departures_on(self, day, bookings):
        """Checked-in bookings checking out on `day`."""
        day = as_date(day)
        return [
            booking for booking in bookings
            if booking.status == BookingStatus.CHECKED_IN and booking.check_out == day
        ]

    def _first_blocking(self, room_id, check_in, check_out, bookings, exclude_booking_id=None):
        for booking in bookings:
            if booking.room_id != room_id or booking.id == exclude_booking_id:
                continue
            if booking.status not in ACTIVE_BOOKING_STATUSES:
                continue
            if intervals_overlap(check_in, check_out, booking.check_in, booking.check_out):
                return booking
        return None

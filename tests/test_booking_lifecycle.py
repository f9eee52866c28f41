"""Tests for the booking status machine."""

import pytest

from parsonage.constants import BookingStatus
from parsonage.exceptions import InvalidTransitionError
from parsonage.services import booking_lifecycle

from .factories import make_booking


class TestTransitions:

    def test_happy_path(self):
        booking = make_booking(status=BookingStatus.PENDING)
        booking = booking_lifecycle.confirm(booking)
        assert booking.status == BookingStatus.CONFIRMED
        booking = booking_lifecycle.check_in(booking)
        assert booking.status == BookingStatus.CHECKED_IN
        booking = booking_lifecycle.check_out(booking)
        assert booking.status == BookingStatus.CHECKED_OUT

    @pytest.mark.parametrize('status', [BookingStatus.PENDING, BookingStatus.CONFIRMED])
    def test_cancel_before_arrival(self, status):
        assert booking_lifecycle.cancel(make_booking(status=status)).status == BookingStatus.CANCELLED

    def test_checkout_of_pending_booking_fails_and_leaves_it_unmodified(self):
        booking = make_booking(status=BookingStatus.PENDING)
        with pytest.raises(InvalidTransitionError):
            booking_lifecycle.check_out(booking)
        assert booking.status == BookingStatus.PENDING

    def test_cannot_skip_confirmation(self):
        with pytest.raises(InvalidTransitionError):
            booking_lifecycle.check_in(make_booking(status=BookingStatus.PENDING))

    def test_checked_in_booking_cannot_be_cancelled(self):
        with pytest.raises(InvalidTransitionError):
            booking_lifecycle.cancel(make_booking(status=BookingStatus.CHECKED_IN))

    @pytest.mark.parametrize('status', [BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED])
    @pytest.mark.parametrize('target', list(BookingStatus))
    def test_terminal_states_never_change(self, status, target):
        with pytest.raises(InvalidTransitionError):
            booking_lifecycle.transition(make_booking(status=status), target)

    def test_transition_returns_a_new_record(self):
        booking = make_booking(status=BookingStatus.PENDING)
        confirmed = booking_lifecycle.confirm(booking)
        assert confirmed is not booking
        assert confirmed.code == booking.code


def test_plain_string_statuses_from_storage():
    assert booking_lifecycle.can_transition('Pending', BookingStatus.CONFIRMED)
    assert booking_lifecycle.can_transition('Checked In', 'Checked Out')
    assert not booking_lifecycle.can_transition('Cancelled', BookingStatus.CONFIRMED)


def test_unknown_status_is_rejected():
    with pytest.raises(InvalidTransitionError):
        booking_lifecycle.assert_can_transition('No Show', BookingStatus.CANCELLED)

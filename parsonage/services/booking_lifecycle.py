"""
Guest booking status machine.

    Pending   -> Confirmed | Cancelled
    Confirmed -> Checked In | Cancelled
    Checked In -> Checked Out

Checked Out and Cancelled are terminal. Transitions return a new Booking
snapshot; the input is never modified.
"""

from dataclasses import replace

from parsonage.constants import BookingStatus
from parsonage.exceptions import InvalidTransitionError

# Keyed by plain values so rows read back from the database match.
ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING.value: (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    BookingStatus.CONFIRMED.value: (BookingStatus.CHECKED_IN, BookingStatus.CANCELLED),
    BookingStatus.CHECKED_IN.value: (BookingStatus.CHECKED_OUT,),
    BookingStatus.CHECKED_OUT.value: (),
    BookingStatus.CANCELLED.value: (),
}

TERMINAL_STATUSES = (BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED)


def can_transition(current, target):
    return target in ALLOWED_TRANSITIONS.get(str(current), ())


def assert_can_transition(current, target):
    """Raise InvalidTransitionError unless `current -> target` is allowed."""
    if str(current) not in ALLOWED_TRANSITIONS:
        raise InvalidTransitionError(f"Unknown booking status {current!r}", current=current, target=target)

    if not can_transition(current, target):
        if current in TERMINAL_STATUSES:
            message = f"Booking is {current} and can no longer change"
        else:
            message = f"Cannot move a booking from {current} to {target}"
        raise InvalidTransitionError(message, current=current, target=target)


def transition(booking, target):
    assert_can_transition(booking.status, target)
    return replace(booking, status=target)


def confirm(booking):
    return transition(booking, BookingStatus.CONFIRMED)


def check_in(booking):
    return transition(booking, BookingStatus.CHECKED_IN)


def check_out(booking):
    return transition(booking, BookingStatus.CHECKED_OUT)


def cancel(booking):
    return transition(booking, BookingStatus.CANCELLED)

"""
Rent payment status for long-term rooms.

Status depends only on the room's occupancy and its last payment date
relative to the evaluation day; rooms are evaluated independently.
"""

from parsonage.constants import PaymentStatus, RoomKind, RoomStatus

from .dates import as_date, first_of_month, first_of_previous_month, today as local_today


def derive_payment_status(room_status, last_payment_date=None, on=None):
    """
    Derive the payment status of one room.

    Args:
        room_status: RoomStatus value
        last_payment_date: date of the most recent rent payment, or None
        on: evaluation day (defaults to today)

    Returns:
        PaymentStatus:
            - NOT_APPLICABLE when the room is not Occupied
            - PAID when paid on or after the 1st of this month
            - DUE when paid on or after the 1st of last month
            - OVERDUE otherwise, including when no payment was ever recorded
    """
    if room_status != RoomStatus.OCCUPIED:
        return PaymentStatus.NOT_APPLICABLE

    on = as_date(on) if on is not None else local_today()

    if last_payment_date is None:
        return PaymentStatus.OVERDUE

    last_payment_date = as_date(last_payment_date)
    if last_payment_date >= first_of_month(on):
        return PaymentStatus.PAID
    if last_payment_date >= first_of_previous_month(on):
        return PaymentStatus.DUE
    return PaymentStatus.OVERDUE


class PaymentStatusService:
    """
    Evaluates payment status across a snapshot of rooms.

    Usage:
        service = PaymentStatusService(on=date(2024, 6, 3))
        statuses = service.evaluate(rooms)
        overdue = service.rooms_with_status(rooms, PaymentStatus.OVERDUE)
    """

    def __init__(self, on=None):
        self.on = as_date(on) if on is not None else local_today()

    def status_for(self, room):
        return derive_payment_status(room.status, room.last_payment_date, self.on)

    def evaluate(self, rooms):
        """Return {room_id: PaymentStatus} for every long-term room."""
        return {
            room.id: self.status_for(room)
            for room in rooms
            if room.kind == RoomKind.LONG_TERM
        }

    def rooms_with_status(self, rooms, *statuses):
        """Long-term rooms whose derived status is one of `statuses`, in input order."""
        return [
            room for room in rooms
            if room.kind == RoomKind.LONG_TERM and self.status_for(room) in statuses
        ]

    def overdue_rooms(self, rooms):
        return self.rooms_with_status(rooms, PaymentStatus.OVERDUE)

    def unpaid_rooms(self, rooms):
        """Rooms that still owe this month's rent (Due or Overdue)."""
        return self.rooms_with_status(rooms, PaymentStatus.DUE, PaymentStatus.OVERDUE)

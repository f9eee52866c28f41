"""Record factories: engine inputs built without the database."""

from datetime import date
from decimal import Decimal

from parsonage import records
from parsonage.constants import BookingStatus, RoomKind, RoomStatus


def make_room(id=1, number='101', base_rate='800.00', status=RoomStatus.OCCUPIED,
              kind=RoomKind.LONG_TERM, **kwargs):
    return records.Room(id=id, number=number, base_rate=Decimal(base_rate), status=status, kind=kind, **kwargs)


def make_guest_room(id=10, number='G1', base_rate='75.00', **kwargs):
    kwargs.setdefault('status', RoomStatus.VACANT)
    kwargs.setdefault('name', f'Guest Suite {number[1:]}')
    return make_room(id=id, number=number, base_rate=base_rate, kind=RoomKind.GUEST, **kwargs)


def make_booking(id=1, room_id=10, check_in=date(2024, 6, 10), check_out=date(2024, 6, 15),
                 status=BookingStatus.CONFIRMED, **kwargs):
    kwargs.setdefault('code', f'GB-{id}')
    return records.Booking(id=id, room_id=room_id, check_in=check_in, check_out=check_out, status=status, **kwargs)


def make_entry(entry_date, amount, category='Other', **kwargs):
    return records.LedgerEntry(entry_date=entry_date, amount=Decimal(str(amount)), category=category, **kwargs)

"""
Tabular store backed by the Django ORM.

Reads return immutable records; writes go through single-row updates so
the engines never see or touch model instances.
"""

import logging

from django.db import transaction

from parsonage.exceptions import InvalidTransitionError, NotFoundError

logger = logging.getLogger(__name__)


class DjangoTabularStore:
    """
    Usage:
        store = DjangoTabularStore()
        rooms = store.list_rooms(kind=RoomKind.GUEST)
        store.write_room_status(rooms[0].id, RoomStatus.OCCUPIED)
    """

    # =========================================================================
    # READS
    # =========================================================================

    def list_rooms(self, kind=None):
        from parsonage.models import Room

        queryset = Room.objects.select_related('tenant')
        if kind is not None:
            queryset = queryset.filter(kind=kind)
        return [room.to_record() for room in queryset]

    def list_tenants(self, housed_only=False):
        from parsonage.models import Tenant

        queryset = Tenant.objects.all()
        if housed_only:
            queryset = queryset.filter(room__isnull=False)
        return [tenant.to_record() for tenant in queryset]

    def list_bookings(self, room_id=None, statuses=None):
        from parsonage.models import Booking

        queryset = Booking.objects.all()
        if room_id is not None:
            queryset = queryset.filter(room_id=room_id)
        if statuses is not None:
            queryset = queryset.filter(status__in=statuses)
        return [booking.to_record() for booking in queryset]

    def list_ledger_entries(self, start=None, end=None, category=None):
        """Entries with start <= entry_date <= end; either bound may be omitted."""
        from parsonage.models import LedgerEntry

        queryset = LedgerEntry.objects.all()
        if start is not None:
            queryset = queryset.filter(entry_date__gte=start)
        if end is not None:
            queryset = queryset.filter(entry_date__lte=end)
        if category is not None:
            queryset = queryset.filter(category=category)
        return [entry.to_record() for entry in queryset.order_by('entry_date', 'id')]

    def list_pricing_rules(self, active_only=False):
        """
        Validated PricingRule records in priority order.

        Raises:
            InvalidRuleError: for the first stored rule that does not parse
        """
        from parsonage.models import PricingRule

        queryset = PricingRule.objects.all()
        if active_only:
            queryset = queryset.filter(active=True)
        return [rule.to_record() for rule in queryset]

    def get_room(self, room_id):
        from parsonage.models import Room

        try:
            return Room.objects.select_related('tenant').get(pk=room_id).to_record()
        except Room.DoesNotExist:
            raise NotFoundError(f"Room {room_id} does not exist", room_id=room_id)

    def get_room_by_number(self, number):
        from parsonage.models import Room

        try:
            return Room.objects.select_related('tenant').get(number=str(number).strip()).to_record()
        except Room.DoesNotExist:
            raise NotFoundError(f"Room {number} does not exist", room_number=str(number))

    def get_booking(self, booking_id):
        from parsonage.models import Booking

        try:
            return Booking.objects.get(pk=booking_id).to_record()
        except Booking.DoesNotExist:
            raise NotFoundError(f"Booking {booking_id} does not exist", booking_id=booking_id)

    def tenant_for_room(self, room_id):
        """Tenant record occupying the room, or None."""
        from parsonage.models import Tenant

        tenant = Tenant.objects.filter(room_id=room_id).first()
        return tenant.to_record() if tenant else None

    # =========================================================================
    # WRITES
    # =========================================================================

    def lock_room(self, room_id):
        """Room model row locked for update; call inside transaction.atomic()."""
        from parsonage.models import Room

        try:
            return Room.objects.select_for_update().get(pk=room_id)
        except Room.DoesNotExist:
            raise NotFoundError(f"Room {room_id} does not exist", room_id=room_id)

    def lock_booking(self, booking_id):
        """Booking model row locked for update; call inside transaction.atomic()."""
        from parsonage.models import Booking

        try:
            return Booking.objects.select_for_update().get(pk=booking_id)
        except Booking.DoesNotExist:
            raise NotFoundError(f"Booking {booking_id} does not exist", booking_id=booking_id)

    def write_room_status(self, room_id, status):
        with transaction.atomic():
            room = self.lock_room(room_id)
            if room.status != status:
                room.status = status
                room.save(update_fields=['status', 'updated_at'])
                logger.info("Room %s status -> %s", room.number, status)

    def write_payment_status(self, room_id, status):
        """Store the derived payment status; returns True when it changed."""
        with transaction.atomic():
            room = self.lock_room(room_id)
            if room.payment_status == status:
                return False
            room.payment_status = status
            room.save(update_fields=['payment_status', 'updated_at'])
            return True

    def write_last_payment_date(self, room_id, paid_on):
        with transaction.atomic():
            room = self.lock_room(room_id)
            if room.last_payment_date is None or paid_on > room.last_payment_date:
                room.last_payment_date = paid_on
                room.save(update_fields=['last_payment_date', 'updated_at'])

    def append_ledger_entry(self, entry):
        """Persist a LedgerEntry record; returns it with its new id."""
        from parsonage.models import LedgerEntry

        row = LedgerEntry.objects.create(
            entry_date=entry.entry_date,
            amount=entry.amount,
            category=entry.category,
            entry_type=entry.entry_type,
            description=entry.description,
            room_id=entry.room_id,
            booking_id=entry.booking_id,
        )
        logger.info("Ledger %s %s %s", row.entry_date, row.category, row.amount)
        return row.to_record()

    def update_booking_status(self, booking_id, status, expected=None):
        """
        Set a booking's status.

        Args:
            expected: status the caller read; when given and the row no
                longer has it, InvalidTransitionError is raised instead of
                overwriting a concurrent change.
        """
        with transaction.atomic():
            booking = self.lock_booking(booking_id)
            if expected is not None and booking.status != expected:
                raise InvalidTransitionError(
                    f"Booking {booking.code} is now {booking.status}, expected {expected}",
                    booking_id=booking_id,
                    current=booking.status,
                    expected=expected,
                )
            booking.status = status
            booking.save(update_fields=['status', 'updated_at'])
            logger.info("Booking %s status -> %s", booking.code, status)
            return booking.to_record()

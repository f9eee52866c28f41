"""
Tenancy and guest booking workflows.

Each operation reads a snapshot from the tabular store, runs the pure
engines over it and writes the result back inside one transaction, with
the mutated rows locked for update.
"""

import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.utils import timezone

from parsonage import records
from parsonage.constants import (
    BookingStatus,
    LedgerCategory,
    PaymentStatus,
    RoomKind,
    RoomStatus,
)
from parsonage.exceptions import BookingConflictError, NotFoundError, ParsonageError

from . import booking_lifecycle
from .availability import BookingAvailabilityService
from .dates import as_date, first_of_month, today as local_today
from .documents import render_guest_invoice, render_rent_invoice
from .notifications import EmailDispatcher, NotificationBuilder
from .payment_status import PaymentStatusService, derive_payment_status
from .pricing_service import PricingService
from .repository import DjangoTabularStore

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


def _money(value):
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


# =============================================================================
# TENANCY
# =============================================================================

class TenancyWorkflow:
    """
    Long-term rooms: payment status, rent payments, move-in and move-out,
    and the monthly mail runs.

    Usage:
        workflow = TenancyWorkflow()
        workflow.record_rent_payment(room.id, paid_on=date(2024, 6, 2))
        summary = workflow.refresh_payment_statuses()
    """

    def __init__(self, store=None, builder=None):
        self.store = store or DjangoTabularStore()
        self.builder = builder or NotificationBuilder()

    def refresh_payment_statuses(self, on=None):
        """
        Re-derive and store the payment status of every long-term room.

        Returns:
            Dict with 'evaluated', 'changed' and 'statuses' ({room number: status}).
        """
        on = as_date(on) if on is not None else local_today()
        service = PaymentStatusService(on=on)

        with transaction.atomic():
            rooms = self.store.list_rooms(kind=RoomKind.LONG_TERM)
            statuses = service.evaluate(rooms)
            changed = 0
            for room in rooms:
                if self.store.write_payment_status(room.id, statuses[room.id]):
                    changed += 1

        logger.info("Payment statuses refreshed for %d rooms (%d changed)", len(rooms), changed)
        return {
            'evaluated': len(rooms),
            'changed': changed,
            'statuses': {room.number: statuses[room.id] for room in rooms},
        }

    def record_rent_payment(self, room_id, amount=None, paid_on=None, description=''):
        """
        Record a rent payment against a room.

        Sets the last payment date, appends a Rent ledger entry referencing
        the room and re-derives the payment status. `amount` defaults to the
        room's billing rate.

        Returns:
            The stored LedgerEntry record.
        """
        paid_on = as_date(paid_on) if paid_on is not None else local_today()

        with transaction.atomic():
            room = self.store.lock_room(room_id)
            amount = _money(amount if amount is not None else room.billing_rate)
            if amount <= 0:
                raise ParsonageError("Payment amount must be positive", amount=str(amount))

            tenant = room.current_tenant
            self.store.write_last_payment_date(room.pk, paid_on)
            entry = self.store.append_ledger_entry(records.LedgerEntry(
                entry_date=paid_on,
                amount=amount,
                category=LedgerCategory.RENT,
                entry_type='Rent Income',
                description=description or f"Rent - Room {room.number}" + (f" - {tenant.name}" if tenant else ''),
                room_id=room.pk,
            ))

            snapshot = self.store.get_room(room.pk)
            self.store.write_payment_status(
                room.pk,
                derive_payment_status(snapshot.status, snapshot.last_payment_date, local_today()),
            )

        logger.info("Rent payment of %s recorded for room %s", amount, room.number)
        return entry

    def move_in(self, room_id, tenant_id, on=None):
        """Place a tenant in a Vacant or Pending room and mark it Occupied."""
        from parsonage.models import Tenant

        on = as_date(on) if on is not None else local_today()

        with transaction.atomic():
            room = self.store.lock_room(room_id)
            if room.kind != RoomKind.LONG_TERM:
                raise ParsonageError(f"Room {room.number} is not a long-term room", room_id=room_id)
            if room.status not in (RoomStatus.VACANT, RoomStatus.PENDING):
                raise ParsonageError(f"Room {room.number} is {room.status}", room_id=room_id, status=room.status)

            tenant = Tenant.objects.select_for_update().filter(pk=tenant_id).first()
            if tenant is None:
                raise NotFoundError(f"Tenant {tenant_id} does not exist", tenant_id=tenant_id)
            if tenant.room_id and tenant.room_id != room.pk:
                raise ParsonageError(f"{tenant.name} already occupies another room", tenant_id=tenant_id)

            tenant.room = room
            tenant.move_in_date = on
            tenant.move_out_date = None
            tenant.save(update_fields=['room', 'move_in_date', 'move_out_date', 'updated_at'])

            room.status = RoomStatus.OCCUPIED
            room.payment_status = derive_payment_status(RoomStatus.OCCUPIED, room.last_payment_date, on)
            room.save(update_fields=['status', 'payment_status', 'updated_at'])

        logger.info("%s moved into room %s on %s", tenant.name, room.number, on)
        return tenant.to_record()

    def move_out(self, room_id, on=None):
        """Release the room's tenant and mark the room Vacant."""
        on = as_date(on) if on is not None else local_today()

        with transaction.atomic():
            room = self.store.lock_room(room_id)
            tenant = room.current_tenant
            if tenant is not None:
                tenant.room = None
                tenant.move_out_date = on
                tenant.save(update_fields=['room', 'move_out_date', 'updated_at'])

            room.status = RoomStatus.VACANT
            room.payment_status = PaymentStatus.NOT_APPLICABLE
            room.save(update_fields=['status', 'payment_status', 'updated_at'])

        logger.info("Room %s vacated on %s", room.number, on)
        return tenant.to_record() if tenant else None

    # =========================================================================
    # MAIL RUNS
    # =========================================================================

    def _rooms_with_tenants(self, rooms):
        tenants = {tenant.room_id: tenant for tenant in self.store.list_tenants(housed_only=True)}
        return [(room, tenants.get(room.id)) for room in rooms]

    def rent_reminders(self, on=None):
        """Reminder emails for every housed tenant whose rent is Due or Overdue."""
        service = PaymentStatusService(on=on)
        rooms = service.unpaid_rooms(self.store.list_rooms(kind=RoomKind.LONG_TERM))
        return [
            self.builder.rent_reminder(room, tenant, service.status_for(room))
            for room, tenant in self._rooms_with_tenants(rooms)
            if tenant is not None
        ]

    def late_payment_alert(self, on=None):
        """Manager digest of Overdue rooms, or None when nothing is overdue."""
        service = PaymentStatusService(on=on)
        rooms = service.overdue_rooms(self.store.list_rooms(kind=RoomKind.LONG_TERM))
        if not rooms:
            return None
        return self.builder.late_payment_alert(self._rooms_with_tenants(rooms), service.on)

    def monthly_invoices(self, period_start=None):
        """Rent invoices with PDF attachments for every occupied long-term room."""
        period_start = first_of_month(period_start or local_today())
        emails = []
        rooms = [
            room for room in self.store.list_rooms(kind=RoomKind.LONG_TERM)
            if room.status == RoomStatus.OCCUPIED
        ]
        for room, tenant in self._rooms_with_tenants(rooms):
            if tenant is None:
                logger.warning("Room %s is Occupied but has no tenant on file", room.number)
                continue
            pdf = render_rent_invoice(room, tenant, period_start)
            emails.append(self.builder.rent_invoice(room, tenant, period_start, pdf))
        return emails


# =============================================================================
# GUEST BOOKINGS
# =============================================================================

class GuestBookingWorkflow:
    """
    Guest room bookings from request to check-out.

    Usage:
        workflow = GuestBookingWorkflow()
        booking = workflow.create_booking(room.id, 'Ada', 'ada@example.com',
                                          date(2024, 6, 10), date(2024, 6, 15))
        workflow.confirm(booking.id, notify=True)
        workflow.check_in(booking.id)
        workflow.check_out(booking.id)
    """

    def __init__(self, store=None, builder=None, dispatcher=None):
        self.store = store or DjangoTabularStore()
        self.builder = builder or NotificationBuilder()
        self.dispatcher = dispatcher
        self.availability = BookingAvailabilityService()

    def _dispatcher(self):
        if self.dispatcher is None:
            self.dispatcher = EmailDispatcher()
        return self.dispatcher

    def quote(self, room_id, check_in, check_out, now=None):
        """Price a stay in a guest room with the active pricing rules."""
        room = self.store.get_room(room_id)
        rules = self.store.list_pricing_rules(active_only=True)
        return PricingService(rules).quote(room.base_rate, check_in, check_out, now=now)

    def available_rooms(self, check_in, check_out):
        return self.availability.available_rooms(
            check_in,
            check_out,
            self.store.list_rooms(kind=RoomKind.GUEST),
            self.store.list_bookings(statuses=[BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN]),
            kind=RoomKind.GUEST,
        )

    def create_booking(self, room_id, guest_name, guest_email, check_in, check_out,
                       guests=1, guest_phone='', special_requests='', purpose='', now=None):
        """
        Create a Pending booking priced with the active pricing rules.

        Raises:
            InvalidRangeError: check_out is not after check_in
            BookingConflictError: the room is held by another booking
        """
        from parsonage.models import Booking

        with transaction.atomic():
            room = self.store.lock_room(room_id)
            if room.kind != RoomKind.GUEST:
                raise ParsonageError(f"Room {room.number} is not a guest room", room_id=room_id)
            if guests > room.max_occupancy:
                raise ParsonageError(
                    f"Room {room.number} sleeps at most {room.max_occupancy}",
                    room_id=room_id,
                    guests=guests,
                )

            snapshot = room.to_record()
            if not self.availability.is_available(snapshot, check_in, check_out, self.store.list_bookings(room_id=room.pk)):
                raise BookingConflictError(
                    f"Room {room.number} is not available from {check_in} to {check_out}",
                    room_id=room_id,
                    check_in=str(check_in),
                    check_out=str(check_out),
                )

            quote = self.quote(room.pk, check_in, check_out, now=now)
            booking = Booking.objects.create(
                room=room,
                guest_name=guest_name,
                guest_email=guest_email,
                guest_phone=guest_phone,
                guests=guests,
                check_in=check_in,
                check_out=check_out,
                nightly_rate=quote.rate,
                total_amount=_money(quote.total),
                pricing_notes='; '.join(quote.adjustments),
                special_requests=special_requests,
                purpose=purpose,
            )

        logger.info(
            "Booking %s created for %s in room %s (%s nights at %s)",
            booking.code, guest_name, room.number, quote.nights, quote.rate,
        )
        return booking.to_record()

    def confirm(self, booking_id, notify=False):
        """
        Confirm a Pending booking.

        Raises:
            InvalidTransitionError: the booking is not Pending
            BookingConflictError: an active booking overlaps the stay
        """
        with transaction.atomic():
            current = self.store.get_booking(booking_id)
            self.store.lock_room(current.room_id)
            confirmed = booking_lifecycle.confirm(current)

            conflicts = self.availability.conflicts_for(current, self.store.list_bookings(room_id=current.room_id))
            if conflicts:
                raise BookingConflictError(
                    f"Booking {current.code} overlaps {', '.join(b.code for b in conflicts)}",
                    booking_id=booking_id,
                    conflicts=[b.id for b in conflicts],
                )
            self.store.update_booking_status(booking_id, confirmed.status, expected=current.status)

        logger.info("Booking %s confirmed", current.code)
        if notify:
            self.send_confirmation(booking_id)
        return confirmed

    def check_in(self, booking_id):
        with transaction.atomic():
            current = self.store.get_booking(booking_id)
            checked_in = booking_lifecycle.check_in(current)
            self.store.update_booking_status(booking_id, checked_in.status, expected=current.status)
            self.store.write_room_status(current.room_id, RoomStatus.OCCUPIED)

        logger.info("Booking %s checked in", current.code)
        return checked_in

    def check_out(self, booking_id, on=None, log_revenue=True):
        """
        Check a guest out, free the room and book the amount paid as
        Guest Room income referencing the room and the booking.
        """
        on = as_date(on) if on is not None else local_today()

        with transaction.atomic():
            current = self.store.get_booking(booking_id)
            checked_out = booking_lifecycle.check_out(current)
            self.store.update_booking_status(booking_id, checked_out.status, expected=current.status)
            self.store.write_room_status(current.room_id, RoomStatus.VACANT)

            if log_revenue and current.amount_paid > 0:
                room = self.store.get_room(current.room_id)
                self.store.append_ledger_entry(records.LedgerEntry(
                    entry_date=on,
                    amount=current.amount_paid,
                    category=LedgerCategory.GUEST_ROOM,
                    entry_type='Guest Room Income',
                    description=f"{current.guest_name} - {room.label}",
                    room_id=current.room_id,
                    booking_id=current.id,
                ))

        logger.info("Booking %s checked out", current.code)
        return checked_out

    def cancel(self, booking_id):
        with transaction.atomic():
            current = self.store.get_booking(booking_id)
            cancelled = booking_lifecycle.cancel(current)
            self.store.update_booking_status(booking_id, cancelled.status, expected=current.status)

        logger.info("Booking %s cancelled", current.code)
        return cancelled

    def record_payment(self, booking_id, amount):
        """Add a payment to the booking's amount paid."""
        amount = _money(amount)
        if amount <= 0:
            raise ParsonageError("Payment amount must be positive", amount=str(amount))

        with transaction.atomic():
            booking = self.store.lock_booking(booking_id)
            if booking.status == BookingStatus.CANCELLED:
                raise ParsonageError(f"Booking {booking.code} is cancelled", booking_id=booking_id)
            booking.amount_paid += amount
            booking.save(update_fields=['amount_paid', 'updated_at'])

        logger.info("Payment of %s recorded for booking %s", amount, booking.code)
        return booking.to_record()

    # =========================================================================
    # GUEST MAIL
    # =========================================================================

    def send_confirmation(self, booking_id):
        from parsonage.models import Booking

        booking = self.store.get_booking(booking_id)
        room = self.store.get_room(booking.room_id)
        report = self._dispatcher().send([self.builder.booking_confirmation(booking, room)])
        if report.ok:
            Booking.objects.filter(pk=booking_id).update(confirmation_sent_at=timezone.now())
        return report

    def send_invoice(self, booking_id, issued_on=None):
        booking = self.store.get_booking(booking_id)
        room = self.store.get_room(booking.room_id)
        pdf = render_guest_invoice(booking, issued_on=issued_on, room=room)
        return self._dispatcher().send([self.builder.guest_invoice(booking, pdf)])

    def daily_guest_room_check(self, today=None, send=True):
        """
        Daily guest room run.

        Sends check-in reminders for tomorrow's confirmed arrivals and checks
        out today's departures, booking revenue only for fully paid stays.
        A failure on one booking is logged and collected; the run carries on.

        Returns:
            Dict with 'reminders' (OutgoingEmail list), 'report'
            (DispatchReport or None when send is False), 'checked_out'
            (booking codes) and 'errors' ([(booking code, message)]).
        """
        today = as_date(today) if today is not None else local_today()
        tomorrow = today + timedelta(days=1)

        bookings = self.store.list_bookings()
        rooms = {room.id: room for room in self.store.list_rooms(kind=RoomKind.GUEST)}

        reminders = [
            self.builder.check_in_reminder(booking, rooms.get(booking.room_id) or self.store.get_room(booking.room_id))
            for booking in self.availability.arrivals_on(tomorrow, bookings)
        ]
        report = self._dispatcher().send(reminders) if send and reminders else None

        checked_out = []
        errors = []
        for booking in self.availability.departures_on(today, bookings):
            try:
                self.check_out(booking.id, on=today, log_revenue=booking.is_fully_paid)
            except ParsonageError as exc:
                logger.warning("Automatic check-out of %s failed: %s", booking.code, exc.message)
                errors.append((booking.code, exc.message))
                continue
            checked_out.append(booking.code)

        logger.info(
            "Daily guest room check for %s: %d reminders, %d check-outs, %d errors",
            today, len(reminders), len(checked_out), len(errors),
        )
        return {
            'reminders': reminders,
            'report': report,
            'checked_out': checked_out,
            'errors': errors,
        }

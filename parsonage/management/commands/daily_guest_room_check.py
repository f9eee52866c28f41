"""
Daily guest room run: check-in reminders for tomorrow's arrivals and
automatic check-out of today's departures.

Usage:
    python manage.py daily_guest_room_check
    python manage.py daily_guest_room_check --date 2024-06-10 --dry-run
"""

from parsonage.management.base import ParsonageCommand


class Command(ParsonageCommand):
    help = 'Send check-in reminders and check out departing guests'
    sends_mail = True

    def handle(self, *args, **options):
        from parsonage.services.workflows import GuestBookingWorkflow

        today = self.get_date(options)
        if options['dry_run']:
            self._dry_run(today, options)
            return

        result = GuestBookingWorkflow().daily_guest_room_check(today=today)

        self.stdout.write(f"{len(result['reminders'])} check-in reminder(s)")
        if result['report'] is not None:
            self.report_dispatch(result['report'])
        for code in result['checked_out']:
            self.stdout.write(self.style.SUCCESS(f'  Checked out {code}'))
        for code, message in result['errors']:
            self.stdout.write(self.style.ERROR(f'  {code}: {message}'))

    def _dry_run(self, today, options):
        from datetime import timedelta

        from parsonage.constants import RoomKind
        from parsonage.services import BookingAvailabilityService, NotificationBuilder
        from parsonage.services.repository import DjangoTabularStore

        store = DjangoTabularStore()
        service = BookingAvailabilityService()
        bookings = store.list_bookings()
        rooms = {room.id: room for room in store.list_rooms(kind=RoomKind.GUEST)}
        builder = NotificationBuilder()

        reminders = [
            builder.check_in_reminder(booking, rooms.get(booking.room_id) or store.get_room(booking.room_id))
            for booking in service.arrivals_on(today + timedelta(days=1), bookings)
        ]
        self.deliver(reminders, options)
        for booking in service.departures_on(today, bookings):
            self.stdout.write(f'  Would check out {booking.code} ({booking.guest_name})')

"""Tests for the scheduled management commands."""

from datetime import date
from decimal import Decimal
from io import StringIO

import pytest
from django.core import mail
from django.core.management import call_command
from django.core.management.base import CommandError

from parsonage.constants import BookingStatus, PaymentStatus
from parsonage.models import Booking, LedgerEntry, PricingRule, Room, SheetImport


def run(name, *args, **options):
    out = StringIO()
    call_command(name, *args, stdout=out, **options)
    return out.getvalue()


@pytest.mark.django_db
class TestTenancyCommands:

    def test_refresh_payment_statuses(self, tenant):
        output = run('refresh_payment_statuses', date='2024-06-15')

        assert 'Room 101: Due' in output
        assert 'Evaluated 1 rooms as of 2024-06-15: 1 changed' in output
        assert Room.objects.get(number='101').payment_status == PaymentStatus.DUE

    def test_bad_date(self, db):
        with pytest.raises(CommandError):
            run('refresh_payment_statuses', date='15/06/2024')

    def test_rent_reminders_dry_run_sends_nothing(self, tenant):
        output = run('send_rent_reminders', date='2024-06-15', dry_run=True)

        assert 'Dry run: 1 email(s) not sent' in output
        assert 'martha@example.com' in output
        assert mail.outbox == []

    def test_rent_reminders(self, tenant):
        output = run('send_rent_reminders', date='2024-06-15')

        assert 'Sent 1 email(s)' in output
        assert mail.outbox[0].to == ['martha@example.com']

    def test_late_payment_alerts(self, tenant):
        assert 'No overdue rent as of 2024-06-15' in run('send_late_payment_alerts', date='2024-06-15')

        run('send_late_payment_alerts', date='2024-07-15')
        assert mail.outbox[0].to == ['manager@example.com']

    def test_monthly_invoices(self, tenant):
        output = run('send_monthly_invoices', date='2024-07-10')

        assert '1 invoice(s) for July 2024' in output
        assert mail.outbox[0].attachments[0][0] == 'rent-invoice-101-2024-07.pdf'

    def test_revenue_report(self, long_term_room):
        LedgerEntry.objects.create(entry_date=date(2024, 3, 5), amount=Decimal('800.00'), category='Rent')
        output = run('revenue_report', date='2024-03-20', year=True)

        assert 'Revenue report for March 2024' in output
        assert 'Income:    $800.00' in output
        assert 'Rent: $800.00' in output
        assert '2024 by month:' in output


@pytest.mark.django_db
class TestGuestCommands:

    def test_daily_guest_room_check(self, booking):
        Booking.objects.filter(pk=booking.pk).update(status=BookingStatus.CONFIRMED)

        output = run('daily_guest_room_check', date='2024-06-09')

        assert '1 check-in reminder(s)' in output
        assert mail.outbox[0].subject == 'Check-in Reminder - Tomorrow'

    def test_daily_guest_room_check_dry_run(self, booking):
        Booking.objects.filter(pk=booking.pk).update(status=BookingStatus.CHECKED_IN)

        output = run('daily_guest_room_check', date='2024-06-15', dry_run=True)

        assert f'Would check out {booking.code}' in output
        booking.refresh_from_db()
        assert booking.status == BookingStatus.CHECKED_IN

    def test_setup_pricing_rules(self, db):
        output = run('setup_pricing_rules')
        assert 'Created 7, reset 0' in output

        PricingRule.objects.filter(name='Weekend Premium').update(adjustment='+50%')
        run('setup_pricing_rules')
        assert PricingRule.objects.get(name='Weekend Premium').adjustment == '+50%'

        output = run('setup_pricing_rules', reset=True)
        assert 'Created 0, reset 7' in output
        assert PricingRule.objects.get(name='Weekend Premium').adjustment == '+20%'


@pytest.mark.django_db
class TestImportSheetCommand:

    def test_import(self, tmp_path):
        path = tmp_path / 'Guest Rooms.csv'
        path.write_text('Room Number,Room Name,Daily Rate\nG1,Guest Suite 1,75\n')

        output = run('import_sheet', str(path), sheet='Guest Rooms')

        assert 'Created:       1' in output
        assert SheetImport.objects.get().rows_created == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(CommandError):
            run('import_sheet', str(tmp_path / 'nope.csv'), sheet='Tenants')

    def test_failed_import(self, tmp_path):
        path = tmp_path / 'Tenants.csv'
        path.write_text('Tenant\nMartha Jones\n')
        with pytest.raises(CommandError):
            run('import_sheet', str(path), sheet='Tenants')

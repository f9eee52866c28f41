"""Tests for notification building and email dispatch."""

import smtplib
from datetime import date
from decimal import Decimal
from unittest import mock

import pytest
from django.core import mail

from parsonage import records
from parsonage.constants import PaymentStatus
from parsonage.services.notifications import EmailDispatcher, NotificationBuilder

from .factories import make_booking, make_guest_room, make_room


@pytest.fixture
def builder():
    return NotificationBuilder()


@pytest.fixture
def tenant():
    return records.Tenant(id=1, name='Martha Jones', email='martha@example.com', room_id=1)


class TestNotificationBuilder:

    def test_rent_reminder(self, builder, tenant):
        room = make_room(last_payment_date=date(2024, 5, 1))
        email = builder.rent_reminder(room, tenant, PaymentStatus.DUE)

        assert email.to == ('martha@example.com',)
        assert email.subject == 'Rent Reminder - St. Mark Parsonage'
        assert 'rent of $800.00 for room 101 is due' in email.body
        assert 'May 01, 2024' in email.body
        assert email.kind == 'rent_reminder'

    def test_late_payment_alert_goes_to_manager(self, builder, tenant):
        overdue = [
            (make_room(id=1, number='101'), tenant),
            (make_room(id=2, number='102', base_rate='750.00'), None),
        ]
        email = builder.late_payment_alert(overdue, date(2024, 6, 15))

        assert email.to == ('manager@example.com',)
        assert '2 room(s) overdue' in email.subject
        assert 'Room 102: no tenant on file' in email.body
        assert 'Total outstanding monthly rent: $1550.00' in email.body
        assert 'May 01, 2024' in email.body

    def test_booking_confirmation(self, builder):
        booking = make_booking(guest_name='Ada Lovelace', guest_email='ada@example.com',
                               total_amount=Decimal('500.00'), special_requests='Late arrival')
        email = builder.booking_confirmation(booking, make_guest_room(max_occupancy=3))

        assert email.subject == 'Booking Confirmation - GB-1'
        assert 'Number of nights: 5' in email.body
        assert 'Special Requests: Late arrival' in email.body
        assert 'Maximum 3 guests per room' in email.body

    def test_invoice_attachment(self, builder):
        booking = make_booking(guest_email='ada@example.com')
        email = builder.guest_invoice(booking, b'%PDF-fake')
        assert email.attachments == (('invoice-GB-1.pdf', b'%PDF-fake', 'application/pdf'),)

    def test_intake_notices_include_manager_copy(self, builder):
        ack, notice = builder.guest_request_received(
            'Ada', 'ada@example.com', date(2024, 6, 10), date(2024, 6, 12), 'booked',
        )
        assert ack.to == ('ada@example.com',)
        assert notice.to == ('manager@example.com',)
        assert 'Outcome: booked' in notice.body

    def test_template_override(self, builder, tenant, settings):
        settings.PARSONAGE = {
            **settings.PARSONAGE,
            'EMAIL_TEMPLATES': {'rent_reminder': {'subject': 'Rent for room {room_number}'}},
        }
        email = builder.rent_reminder(make_room(), tenant, PaymentStatus.OVERDUE)

        assert email.subject == 'Rent for room 101'
        assert 'is overdue' in email.body

    def test_missing_address_is_dropped(self, builder):
        email = builder.check_in_reminder(make_booking(guest_email=''), make_guest_room())
        assert email.to == ()


class TestEmailDispatcher:

    def test_sends_through_django_mail(self, builder):
        booking = make_booking(guest_email='ada@example.com')
        report = EmailDispatcher().send([builder.guest_invoice(booking, b'%PDF-fake')])

        assert report.sent == 1
        assert report.ok
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ['ada@example.com']
        assert mail.outbox[0].attachments[0][0] == 'invoice-GB-1.pdf'

    def test_failures_are_retried_then_reported(self, builder):
        connection = mock.Mock()
        connection.send_messages.side_effect = smtplib.SMTPException('relay refused')
        ok = records.OutgoingEmail(to=('a@example.com',), subject='s', body='b', kind='test')

        report = EmailDispatcher(connection=connection).send([ok, ok])

        assert report.sent == 0
        assert len(report.failures) == 2
        assert report.failures[0].attempts == 2
        assert report.failures[0].error == 'relay refused'
        assert connection.send_messages.call_count == 4

    def test_one_failure_does_not_stop_the_batch(self):
        connection = mock.Mock()
        connection.send_messages.side_effect = [OSError('timed out'), OSError('timed out'), 1]
        first = records.OutgoingEmail(to=('a@example.com',), subject='s', body='b')
        second = records.OutgoingEmail(to=('b@example.com',), subject='s', body='b')

        report = EmailDispatcher(connection=connection).send([first, second])

        assert report.sent == 1
        assert [failure.email for failure in report.failures] == [first]

    def test_message_without_recipient_is_not_attempted(self):
        email = records.OutgoingEmail(to=(), subject='s', body='b')
        report = EmailDispatcher().send([email])

        assert report.failures[0].attempts == 0
        assert mail.outbox == []

    def test_malformed_address_is_reported_without_stopping_the_batch(self):
        emails = [
            records.OutgoingEmail(to=(address,), subject='s', body='b', kind='test')
            for address in ('one@example.com', 'bad\naddr@example.com', 'two@example.com')
        ]

        report = EmailDispatcher().send(emails)

        assert report.sent == 2
        assert [mail_.to for mail_ in mail.outbox] == [['one@example.com'], ['two@example.com']]
        assert report.failures[0].email == emails[1]
        assert report.failures[0].attempts == 1

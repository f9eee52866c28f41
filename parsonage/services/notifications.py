"""
Email notifications.

Builders turn records into OutgoingEmail messages; nothing is sent until the
caller hands the messages to EmailDispatcher. Template text can be
overridden per kind through PARSONAGE['EMAIL_TEMPLATES'], e.g.:

    PARSONAGE = {
        'EMAIL_TEMPLATES': {
            'rent_reminder': {'subject': 'Rent due for room {room_number}'},
        },
    }
"""

import logging
import smtplib

from django.core.mail import EmailMessage, get_connection

from parsonage.conf import get_setting
from parsonage.records import DispatchFailure, DispatchReport, OutgoingEmail

from .dates import first_of_previous_month

logger = logging.getLogger(__name__)

DATE_FORMAT = '%B %d, %Y'

PDF_MIMETYPE = 'application/pdf'


# =============================================================================
# TEMPLATES
# =============================================================================

TEMPLATES = {
    'rent_reminder': {
        'subject': 'Rent Reminder - {property_name}',
        'body': (
            "Dear {tenant_name},\n\n"
            "This is a friendly reminder that your rent of {currency}{amount} for room "
            "{room_number} is {status_phrase}.\n\n"
            "Last payment received: {last_payment}\n\n"
            "Please ensure your payment is made as soon as possible.\n\n"
            "Thank you,\n"
            "{property_name} Management"
        ),
    },
    'late_payment_alert': {
        'subject': 'Late Rent Payments - {count} room(s) overdue as of {on}',
        'body': (
            "The following rooms have not paid rent since before {previous_month}:\n\n"
            "{lines}\n\n"
            "Total outstanding monthly rent: {currency}{total}\n"
        ),
    },
    'rent_invoice': {
        'subject': 'Rent Invoice - Room {room_number} - {period}',
        'body': (
            "Dear {tenant_name},\n\n"
            "Please find attached your rent invoice for {period}.\n\n"
            "Amount due: {currency}{amount}\n\n"
            "Thank you,\n"
            "{property_name} Management"
        ),
    },
    'booking_confirmation': {
        'subject': 'Booking Confirmation - {booking_code}',
        'body': (
            "Dear {guest_name},\n\n"
            "Thank you for booking with {property_name} Guest Accommodation. "
            "Your booking has been confirmed!\n\n"
            "Booking Details:\n"
            "- Booking ID: {booking_code}\n"
            "- Room: {room_label}\n"
            "- Check-in: {check_in} (after 3:00 PM)\n"
            "- Check-out: {check_out} (before 11:00 AM)\n"
            "- Number of nights: {nights}\n"
            "- Total Amount: {currency}{total_amount}\n"
            "{special_requests_line}\n"
            "Check-in Instructions:\n"
            "- Please check in at the main office between 3:00 PM and 8:00 PM\n"
            "- Bring a valid photo ID\n"
            "- Payment is due at check-in if not already paid\n\n"
            "House Rules:\n"
            "- Quiet hours: 10:00 PM - 7:00 AM\n"
            "- No smoking in rooms\n"
            "- No pets allowed\n"
            "- Maximum {max_occupancy} guests per room\n\n"
            "If you need to modify or cancel your booking, please contact us at "
            "least 48 hours in advance.\n\n"
            "We look forward to hosting you!\n\n"
            "Best regards,\n"
            "{property_name} Management"
        ),
    },
    'guest_invoice': {
        'subject': 'Invoice - Booking {booking_code}',
        'body': (
            "Dear {guest_name},\n\n"
            "Please find attached your invoice for booking {booking_code}.\n\n"
            "Thank you for choosing {property_name} Guest Accommodation.\n\n"
            "Best regards,\n"
            "{property_name} Management"
        ),
    },
    'check_in_reminder': {
        'subject': 'Check-in Reminder - Tomorrow',
        'body': (
            "Dear {guest_name},\n\n"
            "This is a friendly reminder that your check-in at {property_name} Guest "
            "Accommodation is scheduled for tomorrow, {check_in}.\n\n"
            "Room: {room_label}\n"
            "Check-in time: After 3:00 PM\n\n"
            "Please remember to bring:\n"
            "- Valid photo ID\n"
            "- Payment (if not already paid)\n\n"
            "We look forward to welcoming you!\n\n"
            "Best regards,\n"
            "{property_name} Management"
        ),
    },
    'guest_request_ack': {
        'subject': 'Guest Booking Request Received',
        'body': (
            "Dear {name},\n\n"
            "Thank you for your booking request for {property_name} Guest Accommodation.\n\n"
            "We have received your request for:\n"
            "- Check-in: {check_in}\n"
            "- Check-out: {check_out}\n\n"
            "We will review availability and contact you within 24 hours to confirm "
            "your booking or discuss alternatives.\n\n"
            "If you have any urgent questions, please don't hesitate to contact us.\n\n"
            "Best regards,\n"
            "{property_name} Management"
        ),
    },
    'guest_request_manager': {
        'subject': 'New Guest Booking Request',
        'body': (
            "New guest booking request received:\n\n"
            "Guest: {name}\n"
            "Email: {email}\n"
            "Dates: {check_in} to {check_out}\n"
            "Outcome: {outcome}\n\n"
            "Please review the request in the admin site."
        ),
    },
    'tenant_application_ack': {
        'subject': 'Application Received - {property_name}',
        'body': (
            "Dear {name},\n\n"
            "Thank you for applying to live at {property_name}. We have received your "
            "application for {room_label} with a desired move-in date of {move_in}.\n\n"
            "We will review your application and contact you soon.\n\n"
            "Best regards,\n"
            "{property_name} Management"
        ),
    },
    'tenant_application_manager': {
        'subject': 'New Tenant Application - {name}',
        'body': (
            "New tenant application received:\n\n"
            "Applicant: {name}\n"
            "Email: {email}\n"
            "Phone: {phone}\n"
            "Preferred room: {room_label}\n"
            "Desired move-in: {move_in}\n\n"
            "Please review the application in the admin site."
        ),
    },
    'move_out_ack': {
        'subject': 'Move-Out Request Received - {property_name}',
        'body': (
            "Dear {name},\n\n"
            "We have received your move-out request for room {room_number} with a "
            "planned move-out date of {move_out}.\n\n"
            "We will contact you to schedule the move-out inspection. Please remember "
            "that rent is due through your move-out date.\n\n"
            "Best regards,\n"
            "{property_name} Management"
        ),
    },
    'move_out_manager': {
        'subject': 'Move-Out Request - Room {room_number}',
        'body': (
            "Move-out request received:\n\n"
            "Tenant: {name}\n"
            "Email: {email}\n"
            "Room: {room_number}\n"
            "Planned move-out: {move_out}\n"
            "Reason: {reason}\n"
        ),
    },
}

STATUS_PHRASES = {
    'Due': 'due',
    'Overdue': 'overdue',
}


def get_template(kind):
    """Packaged template for `kind` with any configured overrides applied."""
    template = dict(TEMPLATES[kind])
    overrides = get_setting('EMAIL_TEMPLATES') or {}
    template.update(overrides.get(kind, {}))
    return template


def render(kind, **context):
    """Return (subject, body) for `kind` formatted with `context`."""
    template = get_template(kind)
    return template['subject'].format(**context), template['body'].format(**context)


def format_day(value):
    return value.strftime(DATE_FORMAT) if value else 'never'


# =============================================================================
# BUILDERS
# =============================================================================

class NotificationBuilder:
    """
    Builds OutgoingEmail messages for every notification the property sends.

    Usage:
        builder = NotificationBuilder()
        email = builder.rent_reminder(room, tenant, PaymentStatus.DUE)
        EmailDispatcher().send([email])
    """

    def __init__(self, property_name=None, manager_email=None, currency=None):
        self.property_name = property_name or get_setting('PROPERTY_NAME')
        self.manager_email = manager_email or get_setting('MANAGER_EMAIL')
        self.currency = currency or get_setting('CURRENCY_SYMBOL')

    def _email(self, kind, to, reference='', attachments=(), **context):
        context.setdefault('property_name', self.property_name)
        context.setdefault('currency', self.currency)
        subject, body = render(kind, **context)
        recipients = tuple(address for address in to if address)
        return OutgoingEmail(
            to=recipients,
            subject=subject,
            body=body,
            kind=kind,
            reference=str(reference),
            attachments=tuple(attachments),
        )

    # Tenancy -----------------------------------------------------------------

    def rent_reminder(self, room, tenant, status):
        return self._email(
            'rent_reminder',
            [tenant.email],
            reference=room.number,
            tenant_name=tenant.name,
            room_number=room.number,
            amount=room.billing_rate,
            status_phrase=STATUS_PHRASES.get(str(status), 'due soon'),
            last_payment=format_day(room.last_payment_date),
        )

    def late_payment_alert(self, overdue, on):
        """
        Digest of overdue rooms for the manager.

        Args:
            overdue: list of (Room, Tenant or None) pairs
            on: evaluation day
        """
        lines = []
        total = 0
        for room, tenant in overdue:
            occupant = f"{tenant.name} <{tenant.email}>" if tenant else 'no tenant on file'
            lines.append(
                f"- Room {room.number}: {occupant}, {self.currency}{room.billing_rate}/month, "
                f"last paid {format_day(room.last_payment_date)}"
            )
            total += room.billing_rate
        return self._email(
            'late_payment_alert',
            [self.manager_email],
            reference=on.isoformat(),
            count=len(overdue),
            on=on.isoformat(),
            previous_month=format_day(first_of_previous_month(on)),
            lines='\n'.join(lines),
            total=total,
        )

    def rent_invoice(self, room, tenant, period_start, pdf):
        period = period_start.strftime('%B %Y')
        return self._email(
            'rent_invoice',
            [tenant.email],
            reference=f"{room.number}-{period_start:%Y-%m}",
            attachments=[(f"rent-invoice-{room.number}-{period_start:%Y-%m}.pdf", pdf, PDF_MIMETYPE)],
            tenant_name=tenant.name,
            room_number=room.number,
            period=period,
            amount=room.billing_rate,
        )

    # Guest rooms -------------------------------------------------------------

    def booking_confirmation(self, booking, room):
        special = f"Special Requests: {booking.special_requests}\n" if booking.special_requests else ''
        return self._email(
            'booking_confirmation',
            [booking.guest_email],
            reference=booking.code,
            guest_name=booking.guest_name,
            booking_code=booking.code,
            room_label=room.label,
            check_in=format_day(booking.check_in),
            check_out=format_day(booking.check_out),
            nights=booking.nights,
            total_amount=booking.total_amount,
            special_requests_line=special,
            max_occupancy=room.max_occupancy,
        )

    def guest_invoice(self, booking, pdf):
        return self._email(
            'guest_invoice',
            [booking.guest_email],
            reference=booking.code,
            attachments=[(f"invoice-{booking.code}.pdf", pdf, PDF_MIMETYPE)],
            guest_name=booking.guest_name,
            booking_code=booking.code,
        )

    def check_in_reminder(self, booking, room):
        return self._email(
            'check_in_reminder',
            [booking.guest_email],
            reference=booking.code,
            guest_name=booking.guest_name,
            check_in=format_day(booking.check_in),
            room_label=room.label,
        )

    # Intake ------------------------------------------------------------------

    def guest_request_received(self, name, email, check_in, check_out, outcome):
        """Acknowledgement to the guest plus a notice to the manager."""
        context = {
            'name': name,
            'email': email,
            'check_in': format_day(check_in),
            'check_out': format_day(check_out),
            'outcome': outcome,
        }
        return [
            self._email('guest_request_ack', [email], reference=email, **context),
            self._email('guest_request_manager', [self.manager_email], reference=email, **context),
        ]

    def tenant_application_received(self, name, email, phone, room_label, move_in):
        context = {
            'name': name,
            'email': email,
            'phone': phone or 'not given',
            'room_label': room_label or 'no preference',
            'move_in': format_day(move_in),
        }
        return [
            self._email('tenant_application_ack', [email], reference=email, **context),
            self._email('tenant_application_manager', [self.manager_email], reference=email, **context),
        ]

    def move_out_received(self, name, email, room_number, move_out, reason=''):
        context = {
            'name': name,
            'email': email,
            'room_number': room_number,
            'move_out': format_day(move_out),
            'reason': reason or 'not given',
        }
        return [
            self._email('move_out_ack', [email], reference=room_number, **context),
            self._email('move_out_manager', [self.manager_email], reference=room_number, **context),
        ]


# =============================================================================
# DISPATCH
# =============================================================================

class EmailDispatcher:
    """
    Sends OutgoingEmail batches through Django's mail framework.

    Each message is tried up to `max_attempts` times. A message that still
    fails is recorded in the report and the batch carries on.

    Usage:
        report = EmailDispatcher().send(emails)
        if not report.ok:
            for failure in report.failures:
                print(failure.email.to, failure.error)
    """

    RETRYABLE = (smtplib.SMTPException, OSError)

    def __init__(self, connection=None, max_attempts=None, from_email=None):
        self.connection = connection
        self.max_attempts = max(1, int(max_attempts or get_setting('EMAIL_MAX_ATTEMPTS')))
        self.from_email = from_email

    def _message(self, email):
        message = EmailMessage(
            subject=email.subject,
            body=email.body,
            from_email=self.from_email,
            to=list(email.to),
            connection=self.connection,
        )
        for filename, content, mimetype in email.attachments:
            message.attach(filename, content, mimetype)
        return message

    def send_one(self, email):
        """Send one message. Returns None on success, a DispatchFailure otherwise."""
        if not email.to:
            logger.warning("Skipping %s email %s: no recipient", email.kind, email.reference)
            return DispatchFailure(email=email, error='No recipient address', attempts=0)

        message = self._message(email)
        error = ''
        for attempt in range(1, self.max_attempts + 1):
            try:
                message.send(fail_silently=False)
            except ValueError as exc:
                # Malformed headers or addresses (BadHeaderError) are not retried.
                error = str(exc) or exc.__class__.__name__
                logger.error("Cannot send %s email to %r: %s", email.kind, list(email.to), error)
                return DispatchFailure(email=email, error=error, attempts=attempt)
            except self.RETRYABLE as exc:
                error = str(exc) or exc.__class__.__name__
                logger.warning(
                    "Sending %s email to %s failed (attempt %d/%d): %s",
                    email.kind, ', '.join(email.to), attempt, self.max_attempts, error,
                )
                continue
            logger.info("Sent %s email to %s", email.kind, ', '.join(email.to))
            return None

        return DispatchFailure(email=email, error=error, attempts=self.max_attempts)

    def send(self, emails):
        """Send every message; returns a DispatchReport with the sent count and failures."""
        report = DispatchReport()
        if self.connection is None:
            self.connection = get_connection()

        for email in emails:
            failure = self.send_one(email)
            if failure is None:
                report.sent += 1
            else:
                report.failures.append(failure)

        if report.failures:
            logger.warning("%d of %d emails could not be sent", len(report.failures), report.attempted)
        return report

"""
Form intake: tenant applications, move-out requests and guest booking
requests.

Submissions arrive as {question title: [answer, ...]} (or plain string
answers), are stored as IntakeSubmission rows and then processed. A
submission missing required answers is kept as rejected and the
IntakeError is raised to the caller.
"""

import logging
import re

from dateutil import parser as date_parser
from django.utils import timezone

from parsonage.constants import IntakeKind, IntakeStatus, RoomKind, RoomStatus
from parsonage.exceptions import (
    BookingConflictError,
    IntakeError,
    InvalidRangeError,
    NotFoundError,
)

from .dates import nights_between
from .notifications import EmailDispatcher, NotificationBuilder
from .repository import DjangoTabularStore
from .workflows import GuestBookingWorkflow

logger = logging.getLogger(__name__)

NO_PREFERENCE = 'no preference'

# Question titles as they appear on each form, with accepted variants
FIELDS = {
    'name': ['Full Name', 'Your Full Name', 'Name'],
    'email': ['Email Address', 'Email'],
    'phone': ['Phone Number', 'Phone'],
    'check_in': ['Check-in Date', 'Check-In Date', 'Check In'],
    'check_out': ['Check-out Date', 'Check-Out Date', 'Check Out'],
    'guests': ['Number of Guests', 'Guests'],
    'guest_room': ['Room Preference'],
    'purpose': ['Purpose of Visit'],
    'special_requests': ['Special Requests or Notes', 'Special Requests'],
    'move_in': ['Desired Move-in Date', 'Move-In Date'],
    'preferred_room': ['Preferred Room'],
    'length_of_stay': ['Expected Length of Stay'],
    'room_number': ['Room Number'],
    'move_out': ['Planned Move-Out Date', 'Move-Out Date'],
    'reason': ['Primary Reason for Moving'],
}


def normalize_answers(named_values):
    """Flatten {'Q': ['a', 'b']} to {'Q': 'a, b'} and strip whitespace."""
    answers = {}
    for question, value in (named_values or {}).items():
        if isinstance(value, (list, tuple)):
            value = ', '.join(str(v).strip() for v in value if str(v).strip())
        answers[str(question).strip()] = '' if value is None else str(value).strip()
    return answers


def parse_answer_date(value, field_name):
    try:
        return date_parser.parse(value).date()
    except (ValueError, OverflowError):
        raise IntakeError(f"{field_name} {value!r} is not a date", field=field_name)


def match_room(choice, rooms):
    """
    Room a form choice refers to, e.g. 'Guest Suite 1 - $75/night' or
    'Room 101 - $800/month'. Returns None for 'No preference' or no match.
    """
    label = (choice or '').split(' - ')[0].strip()
    if not label or label.lower() == NO_PREFERENCE:
        return None
    key = label.lower()
    if key.startswith('room '):
        key = key[5:].strip()
    for room in rooms:
        if key in (room.number.lower(), room.name.lower()):
            return room
    return None


class IntakeService:
    """
    Usage:
        service = IntakeService()
        submission = service.handle(IntakeKind.GUEST_BOOKING_REQUEST, {
            'Full Name': ['Ada Lovelace'],
            'Email Address': ['ada@example.com'],
            'Check-in Date': ['2024-06-10'],
            'Check-out Date': ['2024-06-12'],
        })
    """

    def __init__(self, store=None, builder=None, dispatcher=None):
        self.store = store or DjangoTabularStore()
        self.builder = builder or NotificationBuilder()
        self.dispatcher = dispatcher
        self.bookings = GuestBookingWorkflow(store=self.store, builder=self.builder, dispatcher=dispatcher)

    def handle(self, kind, named_values, received_at=None):
        """
        Store and process one form submission.

        Returns:
            The IntakeSubmission row, with status processed, or unplaced
            when a guest request found no free room.

        Raises:
            IntakeError: required answers are missing or unusable
        """
        from parsonage.models import IntakeSubmission

        if kind not in IntakeKind.values:
            raise IntakeError(f"Unknown form kind {kind!r}", kind=str(kind))
        kind = IntakeKind(kind)

        answers = normalize_answers(named_values)
        submission = IntakeSubmission.objects.create(
            kind=kind,
            payload=answers,
            received_at=received_at or timezone.now(),
        )

        handler = {
            IntakeKind.GUEST_BOOKING_REQUEST: self._guest_booking_request,
            IntakeKind.TENANT_APPLICATION: self._tenant_application,
            IntakeKind.MOVE_OUT_REQUEST: self._move_out_request,
        }[kind]

        try:
            emails = handler(submission, answers)
        except IntakeError as exc:
            submission.status = IntakeStatus.REJECTED
            submission.error = exc.message
            submission.processed_at = timezone.now()
            submission.save(update_fields=['status', 'error', 'processed_at'])
            logger.warning("Rejected %s submission %s: %s", kind, submission.pk, exc.message)
            raise

        if submission.status == IntakeStatus.RECEIVED:
            submission.status = IntakeStatus.PROCESSED
        submission.processed_at = timezone.now()
        submission.save()

        report = self._dispatch(emails)
        if not report.ok:
            submission.error = '; '.join(f"{', '.join(f.email.to)}: {f.error}" for f in report.failures)
            submission.save(update_fields=['error'])

        logger.info("Processed %s submission %s (%s)", kind, submission.pk, submission.status)
        return submission

    def _dispatch(self, emails):
        if self.dispatcher is None:
            self.dispatcher = EmailDispatcher()
        return self.dispatcher.send(emails)

    def _answer(self, answers, field, required=False, label=None):
        for question in FIELDS[field]:
            value = answers.get(question)
            if value:
                return value
        if required:
            title = label or FIELDS[field][0]
            raise IntakeError(f"Missing required answer: {title}", field=field)
        return ''

    # =========================================================================
    # HANDLERS
    # =========================================================================

    def _guest_booking_request(self, submission, answers):
        name = self._answer(answers, 'name', required=True)
        email = self._answer(answers, 'email', required=True)
        check_in = parse_answer_date(self._answer(answers, 'check_in', required=True), 'Check-in Date')
        check_out = parse_answer_date(self._answer(answers, 'check_out', required=True), 'Check-out Date')
        try:
            nights_between(check_in, check_out)
        except InvalidRangeError as exc:
            raise IntakeError(exc.message, check_in=str(check_in), check_out=str(check_out))

        guests_answer = self._answer(answers, 'guests')
        match = re.search(r'\d+', guests_answer)
        guests = int(match.group()) if match else 1

        available = self.bookings.available_rooms(check_in, check_out)
        preferred = match_room(self._answer(answers, 'guest_room'), available)
        candidates = [preferred] if preferred and preferred.max_occupancy >= guests else []
        candidates += [room for room in available if room not in candidates and room.max_occupancy >= guests]

        booking = None
        for room in candidates:
            try:
                booking = self.bookings.create_booking(
                    room.id,
                    name,
                    email,
                    check_in,
                    check_out,
                    guests=guests,
                    guest_phone=self._answer(answers, 'phone'),
                    special_requests=self._answer(answers, 'special_requests'),
                    purpose=self._answer(answers, 'purpose'),
                )
                break
            except BookingConflictError:
                continue

        if booking is None:
            submission.status = IntakeStatus.UNPLACED
            outcome = 'No guest room is available for these dates'
        else:
            submission.booking_id = booking.id
            outcome = f"Pending booking {booking.code} created"

        return self.builder.guest_request_received(name, email, check_in, check_out, outcome)

    def _tenant_application(self, submission, answers):
        from parsonage.models import Tenant

        name = self._answer(answers, 'name', required=True)
        email = self._answer(answers, 'email', required=True)
        phone = self._answer(answers, 'phone')
        move_in_answer = self._answer(answers, 'move_in')
        move_in = parse_answer_date(move_in_answer, 'Desired Move-in Date') if move_in_answer else None

        rooms = self.store.list_rooms(kind=RoomKind.LONG_TERM)
        preferred = match_room(self._answer(answers, 'preferred_room'), rooms)

        notes = []
        length = self._answer(answers, 'length_of_stay')
        if length:
            notes.append(f"Expected stay: {length}")
        if move_in:
            notes.append(f"Desired move-in: {move_in.isoformat()}")

        applicant = Tenant.objects.create(
            name=name,
            email=email,
            phone=phone,
            preferred_room_id=preferred.id if preferred else None,
            notes='\n'.join(notes),
        )
        submission.tenant = applicant

        if preferred and preferred.status == RoomStatus.VACANT:
            self.store.write_room_status(preferred.id, RoomStatus.PENDING)

        return self.builder.tenant_application_received(
            name, email, phone, preferred.label if preferred else '', move_in,
        )

    def _move_out_request(self, submission, answers):
        from parsonage.models import Tenant

        name = self._answer(answers, 'name', required=True)
        email = self._answer(answers, 'email', required=True)
        room_number = self._answer(answers, 'room_number', required=True)
        move_out = parse_answer_date(self._answer(answers, 'move_out', required=True), 'Planned Move-Out Date')

        try:
            room = self.store.get_room_by_number(room_number.replace('Room', '').strip())
        except NotFoundError as exc:
            raise IntakeError(exc.message, room_number=room_number)

        tenant = Tenant.objects.filter(room_id=room.id).first()
        if tenant is None:
            raise IntakeError(f"No tenant on file for room {room.number}", room_number=room.number)

        tenant.move_out_date = move_out
        tenant.save(update_fields=['move_out_date', 'updated_at'])
        submission.tenant = tenant

        return self.builder.move_out_received(
            name, email, room.number, move_out, self._answer(answers, 'reason'),
        )

"""
JSON endpoints for the property dashboard and the form webhook.

All endpoints answer {'success': True, ...} or, for domain errors,
{'success': False, 'error': ...} with status 400 (404 for unknown ids).
"""

import json
import logging

from django.http import HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from parsonage.constants import BookingStatus, RoomKind
from parsonage.services import (
    BookingAvailabilityService,
    PaymentStatusService,
    PricingAnalysisService,
    RevenueAggregator,
    render_guest_invoice,
)
from parsonage.services.dates import today as local_today
from parsonage.services.intake import IntakeService
from parsonage.services.repository import DjangoTabularStore
from parsonage.services.workflows import GuestBookingWorkflow

from .mixins import BadRequest, json_view, parse_date_param, parse_int_param, period_params

logger = logging.getLogger(__name__)


def _room_json(room):
    return {
        'id': room.id,
        'number': room.number,
        'name': room.label,
        'kind': room.kind,
        'status': room.status,
        'base_rate': room.base_rate,
        'weekly_rate': room.weekly_rate,
        'max_occupancy': room.max_occupancy,
    }


def _booking_json(booking):
    return {
        'id': booking.id,
        'code': booking.code,
        'room_id': booking.room_id,
        'guest_name': booking.guest_name,
        'guest_email': booking.guest_email,
        'guests': booking.guests,
        'check_in': booking.check_in,
        'check_out': booking.check_out,
        'nights': booking.nights,
        'status': booking.status,
        'total_amount': booking.total_amount,
        'amount_paid': booking.amount_paid,
        'balance_due': booking.balance_due,
    }


# =============================================================================
# GUEST ROOMS
# =============================================================================

@require_GET
@json_view
def availability(request):
    """
    Guest rooms free for a stay.

    Params: check_in, check_out (YYYY-MM-DD; check_out is the departure day)
    """
    check_in = parse_date_param(request, 'check_in', required=True)
    check_out = parse_date_param(request, 'check_out', required=True)
    rooms = GuestBookingWorkflow().available_rooms(check_in, check_out)
    return {
        'check_in': check_in,
        'check_out': check_out,
        'nights': (check_out - check_in).days,
        'rooms': [_room_json(room) for room in rooms],
    }


@require_GET
@json_view
def quote(request):
    """
    Nightly rate for a stay after the active pricing rules.

    Params: room (id) or room_number, check_in, check_out
    """
    store = DjangoTabularStore()
    room_id = parse_int_param(request, 'room')
    if room_id is None:
        number = request.GET.get('room_number')
        if not number:
            raise BadRequest("Missing parameter: room or room_number", parameter='room')
        room_id = store.get_room_by_number(number).id

    check_in = parse_date_param(request, 'check_in', required=True)
    check_out = parse_date_param(request, 'check_out', required=True)
    result = GuestBookingWorkflow(store=store).quote(room_id, check_in, check_out)
    return {
        'room_id': room_id,
        'check_in': check_in,
        'check_out': check_out,
        'base_rate': result.base_rate,
        'rate': result.rate,
        'nights': result.nights,
        'total': result.total,
        'applied': list(result.applied),
        'adjustments': list(result.adjustments),
    }


@require_GET
@json_view
def arrivals_departures(request):
    """Arrivals and departures for a day (?date=, default today)."""
    day = parse_date_param(request, 'date', default=local_today())
    bookings = DjangoTabularStore().list_bookings(
        statuses=[BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN],
    )
    service = BookingAvailabilityService()
    return {
        'date': day,
        'arrivals': [_booking_json(b) for b in service.arrivals_on(day, bookings)],
        'departures': [_booking_json(b) for b in service.departures_on(day, bookings)],
    }


@require_GET
@json_view
def guest_invoice_pdf(request, booking_id):
    """Guest invoice for a booking as a PDF download."""
    store = DjangoTabularStore()
    booking = store.get_booking(booking_id)
    pdf = render_guest_invoice(booking, room=store.get_room(booking.room_id))
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="invoice-{booking.code}.pdf"'
    return response


# =============================================================================
# REPORTS
# =============================================================================

@require_GET
@json_view
def revenue_summary(request):
    """
    Income, expenses and net for a period.

    Params: start, end (inclusive, default month to date), category,
    year (adds the monthly breakdown for that year)
    """
    start, end = period_params(request)
    category = request.GET.get('category') or None
    store = DjangoTabularStore()
    aggregator = RevenueAggregator()

    entries = store.list_ledger_entries()
    summary = aggregator.summarize(entries, start, end, category=category)
    rooms = {room.id: room.number for room in store.list_rooms()}
    by_room = aggregator.revenue_by_room(entries, start, end, category=category)

    data = {
        'start': summary.start,
        'end': summary.end,
        'category': summary.category,
        'income': summary.income,
        'expenses': summary.expenses,
        'net': summary.net,
        'entry_count': summary.entry_count,
        'by_category': summary.by_category,
        'by_room': {rooms.get(room_id, str(room_id)): total for room_id, total in by_room.items()},
    }

    year = parse_int_param(request, 'year')
    if year is not None:
        data['monthly'] = aggregator.monthly_breakdown(entries, year)
    return data


@require_GET
@json_view
def occupancy_report(request):
    """Guest room occupancy for a period plus current occupancy of every room."""
    start, end = period_params(request)
    store = DjangoTabularStore()
    rooms = store.list_rooms()
    guest_rooms = [room for room in rooms if room.kind == RoomKind.GUEST]

    aggregator = RevenueAggregator()
    report = aggregator.occupancy(
        store.list_bookings(),
        start,
        end,
        room_count=len(guest_rooms),
        room_ids={room.id for room in guest_rooms},
    )
    return {
        'start': report.start,
        'end': report.end,
        'room_count': report.room_count,
        'occupied_nights': report.occupied_nights,
        'possible_nights': report.possible_nights,
        'percent': report.percent,
        'current': aggregator.current_occupancy(rooms),
    }


@require_GET
@json_view
def payment_statuses(request):
    """Payment status of every long-term room as of ?date= (default today)."""
    on = parse_date_param(request, 'date', default=local_today())
    store = DjangoTabularStore()
    rooms = store.list_rooms(kind=RoomKind.LONG_TERM)
    tenants = {tenant.room_id: tenant for tenant in store.list_tenants(housed_only=True)}
    statuses = PaymentStatusService(on=on).evaluate(rooms)
    return {
        'date': on,
        'rooms': [
            {
                'id': room.id,
                'number': room.number,
                'status': room.status,
                'tenant': tenants[room.id].name if room.id in tenants else None,
                'billing_rate': room.billing_rate,
                'last_payment_date': room.last_payment_date,
                'payment_status': statuses[room.id],
            }
            for room in rooms
        ],
    }


@require_GET
@json_view
def pricing_analysis(request):
    """Trailing-year guest stay analysis with recommended rates."""
    today = parse_date_param(request, 'date', default=local_today())
    store = DjangoTabularStore()
    rooms = store.list_rooms(kind=RoomKind.GUEST)
    service = PricingAnalysisService(today=today)
    analysis = service.analyze_history(store.list_bookings(), room_count=len(rooms))
    return {
        'analysis': analysis,
        'current_rates': service.current_rates(rooms),
        'recommendations': service.recommend(analysis, rooms),
    }


# =============================================================================
# FORM WEBHOOK
# =============================================================================

@csrf_exempt
@require_POST
@json_view
def intake_webhook(request):
    """
    Receive a form submission.

    Body: {"kind": "guest_booking_request", "named_values": {"Full Name": ["Ada"], ...}}
    """
    try:
        body = json.loads(request.body or b'{}')
    except ValueError:
        raise BadRequest("Request body must be JSON")
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")

    named_values = body.get('named_values', body.get('namedValues'))
    if not isinstance(named_values, dict):
        raise BadRequest("named_values must be an object of answers")

    submission = IntakeService().handle(body.get('kind'), named_values)
    return {
        'submission_id': submission.pk,
        'kind': submission.kind,
        'status': submission.status,
        'booking_id': submission.booking_id,
        'tenant_id': submission.tenant_id,
    }

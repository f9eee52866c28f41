"""
PDF invoices rendered with reportlab.
"""

from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from parsonage.conf import get_setting

from .dates import last_of_month, today as local_today

DATE_FORMAT = '%B %d, %Y'

HEADER_COLOR = colors.HexColor('#1e3a5f')
ACCENT_COLOR = colors.HexColor('#2563eb')


def _styles():
    styles = getSampleStyleSheet()
    return {
        'title': ParagraphStyle(
            'InvoiceTitle',
            parent=styles['Heading1'],
            fontSize=18,
            alignment=1,
            spaceAfter=4,
            textColor=HEADER_COLOR,
        ),
        'subtitle': ParagraphStyle(
            'InvoiceSubtitle',
            parent=styles['Heading2'],
            fontSize=13,
            alignment=1,
            spaceAfter=12,
            textColor=colors.grey,
        ),
        'section': ParagraphStyle(
            'InvoiceSection',
            parent=styles['Heading3'],
            fontSize=11,
            spaceBefore=10,
            spaceAfter=4,
            textColor=ACCENT_COLOR,
        ),
        'normal': styles['Normal'],
    }


def _detail_table(rows, highlight_last=False):
    table = Table(rows, colWidths=[60 * mm, 100 * mm])
    style = [
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ('LINEBELOW', (0, 0), (-1, -1), 0.25, colors.HexColor('#e5e7eb')),
    ]
    if highlight_last:
        style += [
            ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor('#f3f4f6')),
            ('FONTNAME', (1, -1), (1, -1), 'Helvetica-Bold'),
        ]
    table.setStyle(TableStyle(style))
    return table


def _build(story):
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20*mm,
        leftMargin=20*mm,
        topMargin=20*mm,
        bottomMargin=20*mm,
    )
    doc.build(story)
    return buffer.getvalue()


def render_guest_invoice(booking, issued_on=None, room=None):
    """
    Guest stay invoice.

    Args:
        booking: Booking record
        issued_on: invoice date (defaults to today)
        room: optional Room record, used for the room label

    Returns:
        PDF document as bytes
    """
    issued_on = issued_on or local_today()
    property_name = get_setting('PROPERTY_NAME')
    currency = get_setting('CURRENCY_SYMBOL')
    styles = _styles()

    story = [
        Paragraph(f"{property_name.upper()} GUEST ACCOMMODATION", styles['title']),
        Paragraph("Guest Invoice", styles['subtitle']),
        _detail_table([
            ['Invoice Date', issued_on.isoformat()],
            ['Booking ID', booking.code or str(booking.id)],
        ]),
        Paragraph("Guest Information", styles['section']),
        _detail_table([
            ['Name', booking.guest_name],
            ['Email', booking.guest_email],
            ['Phone', booking.guest_phone or '-'],
        ]),
        Paragraph("Booking Details", styles['section']),
        _detail_table([
            ['Room', room.label if room else str(booking.room_id)],
            ['Check-in', booking.check_in.strftime(DATE_FORMAT)],
            ['Check-out', booking.check_out.strftime(DATE_FORMAT)],
            ['Number of nights', str(booking.nights)],
            ['Number of guests', str(booking.guests)],
        ]),
        Paragraph("Payment Summary", styles['section']),
        _detail_table([
            ['Total Amount', f"{currency}{booking.total_amount:.2f}"],
            ['Amount Paid', f"{currency}{booking.amount_paid:.2f}"],
            ['Balance Due', f"{currency}{booking.balance_due:.2f}"],
        ], highlight_last=True),
        Spacer(1, 10*mm),
        Paragraph(f"Thank you for choosing {property_name} Guest Accommodation.", styles['normal']),
    ]
    return _build(story)


def render_rent_invoice(room, tenant, period_start, issued_on=None):
    """
    Monthly rent invoice for a long-term room at its billing rate.

    Returns:
        PDF document as bytes
    """
    issued_on = issued_on or local_today()
    property_name = get_setting('PROPERTY_NAME')
    currency = get_setting('CURRENCY_SYMBOL')
    styles = _styles()
    period_end = last_of_month(period_start)

    story = [
        Paragraph(property_name.upper(), styles['title']),
        Paragraph("Rent Invoice", styles['subtitle']),
        _detail_table([
            ['Invoice Date', issued_on.isoformat()],
            ['Invoice Number', f"{room.number}-{period_start:%Y%m}"],
            ['Billing Period', f"{period_start.strftime(DATE_FORMAT)} - {period_end.strftime(DATE_FORMAT)}"],
        ]),
        Paragraph("Tenant", styles['section']),
        _detail_table([
            ['Name', tenant.name],
            ['Email', tenant.email],
            ['Room', room.label],
        ]),
        Paragraph("Amount Due", styles['section']),
        _detail_table([
            ['Monthly Rent', f"{currency}{room.base_rate:.2f}"],
            ['Rate Billed', f"{currency}{room.billing_rate:.2f}"],
            ['Due By', period_start.strftime(DATE_FORMAT)],
        ], highlight_last=True),
        Spacer(1, 10*mm),
        Paragraph("Please pay by the first of the month to keep your account current.", styles['normal']),
    ]
    return _build(story)

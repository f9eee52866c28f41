"""Tests for PDF invoice rendering."""

from datetime import date
from decimal import Decimal

from parsonage import records
from parsonage.services.documents import render_guest_invoice, render_rent_invoice

from .factories import make_booking, make_guest_room, make_room


def test_guest_invoice_is_a_pdf():
    booking = make_booking(guest_name='Ada Lovelace', guest_email='ada@example.com',
                           total_amount=Decimal('500.00'), amount_paid=Decimal('200.00'))
    pdf = render_guest_invoice(booking, issued_on=date(2024, 6, 15), room=make_guest_room())

    assert pdf.startswith(b'%PDF')
    assert len(pdf) > 1000


def test_guest_invoice_without_room_record():
    assert render_guest_invoice(make_booking(), issued_on=date(2024, 6, 15)).startswith(b'%PDF')


def test_rent_invoice_is_a_pdf():
    room = make_room(negotiated_rate=Decimal('700.00'))
    tenant = records.Tenant(id=1, name='Martha Jones', email='martha@example.com', room_id=room.id)
    pdf = render_rent_invoice(room, tenant, date(2024, 7, 1), issued_on=date(2024, 6, 25))

    assert pdf.startswith(b'%PDF')

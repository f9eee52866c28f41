"""Tests for rent payment status derivation."""

from datetime import date

import pytest

from parsonage.constants import PaymentStatus, RoomStatus
from parsonage.services.payment_status import PaymentStatusService, derive_payment_status

from .factories import make_guest_room, make_room

ON = date(2024, 6, 15)


class TestDerivePaymentStatus:

    @pytest.mark.parametrize('status', [RoomStatus.VACANT, RoomStatus.PENDING, RoomStatus.MAINTENANCE])
    @pytest.mark.parametrize('last_payment', [None, date(2020, 1, 1), date(2024, 6, 1)])
    def test_rooms_not_occupied_are_not_applicable(self, status, last_payment):
        assert derive_payment_status(status, last_payment, ON) == PaymentStatus.NOT_APPLICABLE

    def test_paid_on_first_of_month_is_paid(self):
        assert derive_payment_status(RoomStatus.OCCUPIED, date(2024, 6, 1), ON) == PaymentStatus.PAID

    @pytest.mark.parametrize('last_payment', [date(2024, 5, 1), date(2024, 5, 31)])
    def test_paid_last_month_is_due(self, last_payment):
        assert derive_payment_status(RoomStatus.OCCUPIED, last_payment, ON) == PaymentStatus.DUE

    @pytest.mark.parametrize('last_payment', [date(2024, 4, 30), None])
    def test_older_or_missing_payment_is_overdue(self, last_payment):
        assert derive_payment_status(RoomStatus.OCCUPIED, last_payment, ON) == PaymentStatus.OVERDUE

    def test_january_looks_back_to_december(self):
        assert derive_payment_status(RoomStatus.OCCUPIED, date(2023, 12, 1), date(2024, 1, 10)) == PaymentStatus.DUE

    def test_plain_string_status_from_storage(self):
        assert derive_payment_status('Occupied', date(2024, 6, 2), ON) == PaymentStatus.PAID


class TestPaymentStatusService:

    def test_evaluate_covers_long_term_rooms_only(self):
        rooms = [
            make_room(id=1, number='101', last_payment_date=date(2024, 6, 3)),
            make_room(id=2, number='102', last_payment_date=date(2024, 3, 1)),
            make_room(id=3, number='103', status=RoomStatus.VACANT),
            make_guest_room(id=10),
        ]
        statuses = PaymentStatusService(on=ON).evaluate(rooms)
        assert statuses == {
            1: PaymentStatus.PAID,
            2: PaymentStatus.OVERDUE,
            3: PaymentStatus.NOT_APPLICABLE,
        }

    def test_unpaid_and_overdue_helpers(self):
        paid = make_room(id=1, number='101', last_payment_date=date(2024, 6, 3))
        due = make_room(id=2, number='102', last_payment_date=date(2024, 5, 3))
        overdue = make_room(id=3, number='103')
        service = PaymentStatusService(on=ON)

        assert service.unpaid_rooms([paid, due, overdue]) == [due, overdue]
        assert service.overdue_rooms([paid, due, overdue]) == [overdue]

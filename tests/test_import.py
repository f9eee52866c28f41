"""Tests for importing exported property sheets."""

from datetime import date
from decimal import Decimal

import pytest

from parsonage.constants import (
    BookingStatus,
    ImportStatus,
    LedgerCategory,
    PaymentStatus,
    RoomKind,
    RoomStatus,
)
from parsonage.exceptions import ParsonageError
from parsonage.models import Booking, LedgerEntry, PricingRule, Room, SheetImport, Tenant
from parsonage.services.import_service import SheetImportService


@pytest.fixture
def write_csv(tmp_path):
    def write(name, text):
        path = tmp_path / name
        path.write_text(text.strip() + '\n', encoding='utf-8')
        return path
    return write


@pytest.mark.django_db
class TestTenantsSheet:

    def test_rooms_and_tenants_are_upserted(self, write_csv):
        path = write_csv('Tenants.csv', """
Room Number,Rental Price,Negotiated Price,Current Tenant Name,Tenant Email,Move-In Date,Security Deposit Paid,Room Status,Last Payment Date
101,$800.00,,Martha Jones,martha@example.com,09/01/2023,Yes,Occupied,2020-01-01
102,"1,050.00",950,,,,No,Vacant,
""")
        result = SheetImportService().import_file(path, 'Tenants')

        assert result['success']
        assert result['status'] == ImportStatus.COMPLETED
        assert result['rows_created'] == 2
        assert result['success_rate'] == 100.0

        room = Room.objects.get(number='101')
        assert room.kind == RoomKind.LONG_TERM
        assert room.base_rate == Decimal('800.00')
        assert room.security_deposit_paid
        assert room.payment_status == PaymentStatus.OVERDUE
        assert room.tenant.name == 'Martha Jones'
        assert room.tenant.move_in_date == date(2023, 9, 1)

        other = Room.objects.get(number='102')
        assert other.base_rate == Decimal('1050.00')
        assert other.billing_rate == Decimal('950.00')
        assert other.payment_status == PaymentStatus.NOT_APPLICABLE
        assert Tenant.objects.count() == 1

    def test_reimport_updates(self, write_csv, tenant):
        path = write_csv('Tenants.csv', """
Room Number,Rental Price,Current Tenant Name,Tenant Email,Room Status
101,825,Martha Jones,martha.jones@example.com,Occupied
""")
        result = SheetImportService().import_file(path, 'Tenants')

        assert result['rows_updated'] == 1
        tenant.refresh_from_db()
        assert tenant.email == 'martha.jones@example.com'
        assert Tenant.objects.count() == 1

    def test_bad_rows_are_reported_and_skipped(self, write_csv):
        path = write_csv('Tenants.csv', """
Room Number,Rental Price,Room Status
101,800,Occupied
102,lots,Vacant
103,700,Haunted
""")
        result = SheetImportService().import_file(path, 'Tenants')

        assert result['status'] == ImportStatus.COMPLETED_WITH_ERRORS
        assert result['rows_created'] == 1
        assert result['rows_skipped'] == 2
        assert [error['row'] for error in result['errors']] == [3, 4]
        assert "'lots' is not an amount" in result['errors'][0]['message']
        assert SheetImport.objects.get().rows_skipped == 2

    def test_missing_required_column_fails(self, write_csv):
        path = write_csv('Tenants.csv', """
Room Number,Tenant
101,Martha Jones
""")
        result = SheetImportService().import_file(path, 'Tenants')

        assert not result['success']
        assert result['status'] == ImportStatus.FAILED
        assert result['errors'][0]['message'] == 'Missing required columns: base_rate'
        assert not Room.objects.exists()


@pytest.mark.django_db
class TestOtherSheets:

    def test_guest_rooms(self, write_csv):
        path = write_csv('Guest Rooms.csv', """
Room Number,Room Name,Daily Rate,Weekly Rate,Max Occupancy,Status
G1,Guest Suite 1,75,450,2,Available
G2,Guest Suite 2,85,,4,Maintenance
""")
        result = SheetImportService().import_file(path, 'Guest Rooms')

        assert result['rows_created'] == 2
        suite = Room.objects.get(number='G1')
        assert suite.kind == RoomKind.GUEST
        assert suite.status == RoomStatus.VACANT
        assert suite.weekly_rate == Decimal('450.00')
        assert Room.objects.get(number='G2').max_occupancy == 4

    def test_budget(self, write_csv, long_term_room):
        path = write_csv('Budget.csv', """
Date,Type,Description,Amount,Category
2024-06-02,Rent Income,Rent - Room 101 - Martha Jones,800,Rent
2024-06-05,Utility Expense,Electricity bill,-120.50,Electricity
2024-06-09,Other Income,Room 999 key deposit,50,
2024-06-10,Repair,Leaky faucet,not much,
""")
        service = SheetImportService()
        result = service.import_file(path, 'Budget')

        assert result['rows_created'] == 3
        assert result['rows_skipped'] == 1

        rent = LedgerEntry.objects.get(entry_type='Rent Income')
        assert rent.room == long_term_room
        assert rent.category == LedgerCategory.RENT
        assert LedgerEntry.objects.get(entry_type='Utility Expense').category == LedgerCategory.UTILITIES
        assert LedgerEntry.objects.get(entry_type='Other Income').room is None

    def test_budget_reimport_skips_existing_rows(self, write_csv):
        path = write_csv('Budget.csv', """
Date,Type,Description,Amount,Category
06/05/2024,Utility Expense,Water,-40,Water
""")
        SheetImportService().import_file(path, 'Budget')
        result = SheetImportService().import_file(path, 'Budget')

        assert result['rows_skipped'] == 1
        assert result['errors'] == []
        assert LedgerEntry.objects.count() == 1

    def test_guest_bookings(self, write_csv, guest_room):
        path = write_csv('Guest Bookings.csv', """
Booking ID,Guest Name,Guest Email,Room Number,Check-In Date,Check-Out Date,Number of Guests,Total Amount,Amount Paid,Booking Status
GB-0001,Ada Lovelace,ada@example.com,Guest Suite 1,2024-06-10,2024-06-15,2,500,500,checked out
,Grace Hopper,grace@example.com,G1,2024-07-01,2024-07-03,1,200,0,
GB-0003,Alan Turing,alan@example.com,G9,2024-07-01,2024-07-03,1,200,0,Pending
""")
        result = SheetImportService().import_file(path, 'Guest Bookings')

        assert result['rows_created'] == 2
        assert result['errors'][0]['row'] == 4
        stay = Booking.objects.get(code='GB-0001')
        assert stay.status == BookingStatus.CHECKED_OUT
        assert stay.room == guest_room
        assert stay.amount_paid == Decimal('500.00')
        assert Booking.objects.get(guest_name='Grace Hopper').status == BookingStatus.PENDING

    def test_reimport_cannot_move_a_booking_backwards(self, write_csv, guest_room):
        Booking.objects.create(
            code='GB1', room=guest_room, guest_name='Ada Lovelace', guest_email='ada@example.com',
            check_in=date(2024, 6, 10), check_out=date(2024, 6, 15), status=BookingStatus.CHECKED_OUT,
        )
        path = write_csv('Guest Bookings.csv', """
Booking ID,Guest Name,Guest Email,Room Number,Check-In Date,Check-Out Date,Booking Status
GB1,Ada Lovelace,ada@example.com,G1,2024-06-10,2024-06-15,Pending
""")
        result = SheetImportService().import_file(path, 'Guest Bookings')

        assert result['rows_skipped'] == 1
        assert 'can no longer change' in result['errors'][0]['message']
        assert Booking.objects.get(code='GB1').status == BookingStatus.CHECKED_OUT

    def test_reimport_can_move_a_booking_forward(self, write_csv, guest_room):
        Booking.objects.create(
            code='GB1', room=guest_room, guest_name='Ada Lovelace', guest_email='ada@example.com',
            check_in=date(2024, 6, 10), check_out=date(2024, 6, 15), status=BookingStatus.PENDING,
        )
        path = write_csv('Guest Bookings.csv', """
Booking ID,Guest Name,Guest Email,Room Number,Check-In Date,Check-Out Date,Booking Status
GB1,Ada Lovelace,ada@example.com,G1,2024-06-10,2024-06-15,Confirmed
""")
        result = SheetImportService().import_file(path, 'Guest Bookings')

        assert result['rows_updated'] == 1
        assert Booking.objects.get(code='GB1').status == BookingStatus.CONFIRMED

    def test_overlapping_active_booking_is_rejected(self, write_csv, guest_room):
        Booking.objects.create(
            code='GB1', room=guest_room, guest_name='Ada Lovelace', guest_email='ada@example.com',
            check_in=date(2024, 6, 10), check_out=date(2024, 6, 15), status=BookingStatus.CONFIRMED,
        )
        path = write_csv('Guest Bookings.csv', """
Booking ID,Guest Name,Guest Email,Room Number,Check-In Date,Check-Out Date,Booking Status
GB2,Grace Hopper,grace@example.com,G1,2024-06-12,2024-06-14,Confirmed
GB3,Alan Turing,alan@example.com,G1,2024-06-15,2024-06-17,Confirmed
""")
        result = SheetImportService().import_file(path, 'Guest Bookings')

        assert result['rows_created'] == 1
        assert result['errors'][0]['row'] == 2
        assert 'GB1' in result['errors'][0]['message']
        assert list(Booking.objects.values_list('code', flat=True)) == ['GB1', 'GB3']

    def test_service_instance_can_be_reused(self, write_csv):
        service = SheetImportService()
        bad = write_csv('Tenants.csv', """
Room Number,Rental Price
101,lots
""")
        assert service.import_file(bad, 'Tenants')['rows_skipped'] == 1

        good = write_csv('Guest Rooms.csv', """
Room Number,Room Name,Daily Rate
G1,Guest Suite 1,75
""")
        result = service.import_file(good, 'Guest Rooms')

        assert result['errors'] == []
        assert result['rows_skipped'] == 0
        assert result['status'] == ImportStatus.COMPLETED

    def test_pricing_rules(self, write_csv):
        path = write_csv('Pricing Rules.csv', """
Rule Name,Rule Type,Condition,Price Adjustment,Priority,Active
Weekend Premium,Day of Week,"Friday, Saturday",+20%,1,Yes
Weekly Discount,Length of Stay,7+ nights,-10%,2,No
Broken,Day of Week,Funday,+5%,3,Yes
""")
        result = SheetImportService().import_file(path, 'Pricing Rules')

        assert result['rows_created'] == 2
        assert result['rows_skipped'] == 1
        weekend = PricingRule.objects.get(name='Weekend Premium')
        assert weekend.condition == 'Friday, Saturday'
        assert weekend.to_record().condition == {'days': [4, 5]}
        assert not PricingRule.objects.get(name='Weekly Discount').active

    def test_unknown_sheet(self, write_csv):
        path = write_csv('Other.csv', 'A,B\n1,2')
        with pytest.raises(ParsonageError):
            SheetImportService().import_file(path, 'Inventory')

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / 'Tenants.txt'
        path.write_text('Room Number,Rental Price\n101,800\n')
        result = SheetImportService().import_file(path, 'Tenants')

        assert result['status'] == ImportStatus.FAILED
        assert result['errors'][0]['message'] == 'Unsupported file format: .txt'

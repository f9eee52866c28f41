"""
Spreadsheet import: loads exports of the property workbook (CSV or Excel)
into the database.

Supported sheets and their headers:
- Tenants: Room Number, Rental Price, Negotiated Price, Current Tenant Name,
  Tenant Email, Move-In Date, Security Deposit Paid, Room Status,
  Last Payment Date, Move-Out Date (Planned), Notes
- Guest Rooms: Room Number, Room Name, Daily Rate, Weekly Rate,
  Max Occupancy, Status, Notes
- Budget: Date, Type, Description, Amount, Category
- Guest Bookings: Booking ID, Guest Name, Guest Email, Guest Phone,
  Room Number, Check-In Date, Check-Out Date, Number of Guests,
  Total Amount, Amount Paid, Booking Status, Special Requests
- Pricing Rules: Rule Name, Rule Type, Condition, Price Adjustment,
  Priority, Active, Notes
"""

import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
from django.db import DatabaseError, transaction
from django.utils import timezone

from parsonage.constants import (
    ACTIVE_BOOKING_STATUSES,
    BookingStatus,
    ImportStatus,
    LedgerCategory,
    RoomKind,
    RoomStatus,
)
from parsonage.exceptions import BookingConflictError, ParsonageError

from . import booking_lifecycle
from .dates import intervals_overlap, today as local_today
from .payment_status import derive_payment_status
from .pricing_service import parse_pricing_rule
from .repository import DjangoTabularStore

logger = logging.getLogger(__name__)

MAX_STORED_ERRORS = 100

ROOM_REFERENCE = re.compile(r'\bRoom\s+([A-Za-z0-9-]+)', re.IGNORECASE)


class SheetImportService:
    """
    Imports one exported sheet per call.

    Usage:
        service = SheetImportService()
        result = service.import_file('exports/Tenants.csv', 'Tenants')
        print(result['rows_created'], result['errors'])
    """

    # =========================================================================
    # COLUMN MAPPING (standard name -> accepted headers)
    # =========================================================================
    COLUMN_MAPPING = {
        'Tenants': {
            'room_number': ['Room Number', 'Room'],
            'base_rate': ['Rental Price', 'Rent', 'Monthly Rent'],
            'negotiated_rate': ['Negotiated Price', 'Negotiated Rate'],
            'tenant_name': ['Current Tenant Name', 'Tenant Name', 'Tenant'],
            'tenant_email': ['Tenant Email', 'Email'],
            'move_in_date': ['Move-In Date', 'Move In Date'],
            'deposit_paid': ['Security Deposit Paid', 'Deposit Paid'],
            'status': ['Room Status', 'Status'],
            'last_payment_date': ['Last Payment Date'],
            'move_out_date': ['Move-Out Date (Planned)', 'Move-Out Date', 'Move Out Date'],
            'notes': ['Notes'],
        },
        'Guest Rooms': {
            'room_number': ['Room Number', 'Room'],
            'name': ['Room Name', 'Name'],
            'base_rate': ['Daily Rate', 'Nightly Rate', 'Rate'],
            'weekly_rate': ['Weekly Rate'],
            'max_occupancy': ['Max Occupancy', 'Occupancy'],
            'status': ['Status', 'Room Status'],
            'notes': ['Notes'],
        },
        'Budget': {
            'entry_date': ['Date'],
            'entry_type': ['Type'],
            'description': ['Description'],
            'amount': ['Amount'],
            'category': ['Category'],
        },
        'Guest Bookings': {
            'code': ['Booking ID', 'Booking Code'],
            'guest_name': ['Guest Name'],
            'guest_email': ['Guest Email'],
            'guest_phone': ['Guest Phone'],
            'room_number': ['Room Number', 'Room'],
            'check_in': ['Check-In Date', 'Check-in Date', 'Check In'],
            'check_out': ['Check-Out Date', 'Check-out Date', 'Check Out'],
            'guests': ['Number of Guests', 'Guests'],
            'total_amount': ['Total Amount', 'Total'],
            'amount_paid': ['Amount Paid', 'Paid'],
            'status': ['Booking Status', 'Status'],
            'special_requests': ['Special Requests'],
        },
        'Pricing Rules': {
            'name': ['Rule Name', 'Name'],
            'rule_type': ['Rule Type', 'Type'],
            'condition': ['Condition'],
            'adjustment': ['Price Adjustment', 'Adjustment'],
            'priority': ['Priority'],
            'active': ['Active'],
            'notes': ['Notes'],
        },
    }

    REQUIRED_COLUMNS = {
        'Tenants': {'room_number', 'base_rate'},
        'Guest Rooms': {'room_number', 'base_rate'},
        'Budget': {'entry_date', 'amount'},
        'Guest Bookings': {'guest_name', 'guest_email', 'room_number', 'check_in', 'check_out'},
        'Pricing Rules': {'name', 'rule_type', 'condition', 'adjustment'},
    }

    # Budget categories used on the sheet that map onto ledger categories
    CATEGORY_MAPPING = {
        'rent': LedgerCategory.RENT,
        'guest room': LedgerCategory.GUEST_ROOM,
        'guest rooms': LedgerCategory.GUEST_ROOM,
        'deposit': LedgerCategory.DEPOSIT,
        'security deposit': LedgerCategory.DEPOSIT,
        'utilities': LedgerCategory.UTILITIES,
        'electricity': LedgerCategory.UTILITIES,
        'water': LedgerCategory.UTILITIES,
        'gas': LedgerCategory.UTILITIES,
        'internet': LedgerCategory.UTILITIES,
        'maintenance': LedgerCategory.MAINTENANCE,
        'repair': LedgerCategory.MAINTENANCE,
        'repairs': LedgerCategory.MAINTENANCE,
    }

    # Guest room sheet status values
    GUEST_ROOM_STATUS_MAPPING = {
        'available': RoomStatus.VACANT,
        'vacant': RoomStatus.VACANT,
        'occupied': RoomStatus.OCCUPIED,
        'maintenance': RoomStatus.MAINTENANCE,
        'pending': RoomStatus.PENDING,
    }

    ROW_ERRORS = (ParsonageError, ValueError, TypeError, InvalidOperation, DatabaseError)

    def __init__(self):
        self._reset()

    def _reset(self):
        self.errors = []
        self.stats = {
            'rows_total': 0,
            'rows_created': 0,
            'rows_updated': 0,
            'rows_skipped': 0,
        }

    @classmethod
    def sheet_names(cls):
        return list(cls.COLUMN_MAPPING)

    def import_file(self, file_path, sheet: str, sheet_import=None) -> Dict:
        """
        Import one sheet from a CSV or Excel file.

        Args:
            file_path: path to a .csv, .xlsx or .xls file
            sheet: one of sheet_names(); for workbooks, also the tab to read
            sheet_import: optional SheetImport row to track progress in

        Returns:
            Dict with import results (see _build_result)
        """
        from parsonage.models import SheetImport

        self._reset()
        file_path = Path(file_path)
        if sheet not in self.COLUMN_MAPPING:
            raise ParsonageError(
                f"Unknown sheet {sheet!r}; expected one of: {', '.join(self.sheet_names())}",
                sheet=sheet,
            )

        if sheet_import is None:
            sheet_import = SheetImport.objects.create(
                filename=file_path.name,
                sheet=sheet,
                status=ImportStatus.PROCESSING,
                started_at=timezone.now(),
            )

        df = self._read_file(file_path, sheet)
        if df is None or df.empty:
            if not self.errors:
                self.errors.append({'row': 0, 'message': 'File is empty or could not be read'})
            return self._finish(sheet_import, ImportStatus.FAILED)

        df = self._map_columns(df, sheet)
        missing = self.REQUIRED_COLUMNS[sheet] - set(df.columns)
        if missing:
            self.errors.append({
                'row': 0,
                'message': 'Missing required columns: ' + ', '.join(sorted(missing)),
            })
            return self._finish(sheet_import, ImportStatus.FAILED)

        self.stats['rows_total'] = len(df)
        self._process_dataframe(df, sheet)

        status = ImportStatus.COMPLETED_WITH_ERRORS if self.errors else ImportStatus.COMPLETED
        return self._finish(sheet_import, status)

    def _finish(self, sheet_import, status):
        sheet_import.status = status
        sheet_import.rows_total = self.stats['rows_total']
        sheet_import.rows_created = self.stats['rows_created']
        sheet_import.rows_updated = self.stats['rows_updated']
        sheet_import.rows_skipped = self.stats['rows_skipped']
        sheet_import.errors = self.errors[:MAX_STORED_ERRORS]
        sheet_import.completed_at = timezone.now()
        sheet_import.save()
        logger.info(
            "Imported %s from %s: %s (%d created, %d updated, %d skipped)",
            sheet_import.sheet, sheet_import.filename, status,
            sheet_import.rows_created, sheet_import.rows_updated, sheet_import.rows_skipped,
        )
        return self._build_result(sheet_import)

    # =========================================================================
    # READING
    # =========================================================================

    def _read_file(self, file_path: Path, sheet: str) -> Optional[pd.DataFrame]:
        """Read a CSV file, or the matching tab of a workbook, into a DataFrame."""
        suffix = file_path.suffix.lower()

        if not file_path.exists():
            self.errors.append({'row': 0, 'message': f'File not found: {file_path}'})
            return None

        if suffix in ['.xlsx', '.xls']:
            workbook = pd.ExcelFile(file_path)
            tab = sheet if sheet in workbook.sheet_names else workbook.sheet_names[0]
            return workbook.parse(tab)

        if suffix == '.csv':
            for encoding in ['utf-8', 'latin1']:
                try:
                    return pd.read_csv(file_path, encoding=encoding, index_col=False, dtype=str)
                except UnicodeDecodeError:
                    continue
            self.errors.append({'row': 0, 'message': f'Could not decode {file_path.name}'})
            return None

        self.errors.append({'row': 0, 'message': f'Unsupported file format: {suffix}'})
        return None

    def _map_columns(self, df: pd.DataFrame, sheet: str) -> pd.DataFrame:
        """Rename sheet headers to standard column names."""
        df.columns = [str(col).strip() for col in df.columns]

        column_map = {}
        for standard_name, possible_names in self.COLUMN_MAPPING[sheet].items():
            lowered = [name.lower() for name in possible_names]
            for col in df.columns:
                if col.lower() in lowered and col not in column_map:
                    column_map[col] = standard_name
                    break

        return df.rename(columns=column_map)

    def _process_dataframe(self, df: pd.DataFrame, sheet: str) -> None:
        handler = {
            'Tenants': self._import_tenant_row,
            'Guest Rooms': self._import_guest_room_row,
            'Budget': self._import_budget_row,
            'Guest Bookings': self._import_booking_row,
            'Pricing Rules': self._import_pricing_rule_row,
        }[sheet]

        for i, (_, row) in enumerate(df.iterrows()):
            row_num = i + 2  # spreadsheet row (1-indexed + header)
            try:
                with transaction.atomic():
                    outcome = handler(row)
            except self.ROW_ERRORS as e:
                message = getattr(e, 'message', None) or str(e)
                self.errors.append({'row': row_num, 'message': message})
                self.stats['rows_skipped'] += 1
                continue
            self.stats[f'rows_{outcome}'] += 1

    # =========================================================================
    # ROW HANDLERS (return 'created', 'updated' or 'skipped')
    # =========================================================================

    def _import_tenant_row(self, row) -> str:
        from parsonage.models import Room, Tenant

        number = self._text(row.get('room_number'))
        if not number:
            return 'skipped'

        status = self._text(row.get('status')).capitalize() or RoomStatus.VACANT
        if status not in RoomStatus.values:
            raise ValueError(f"Unknown room status {status!r}")

        last_payment = self._parse_date(row.get('last_payment_date'))
        room, created = Room.objects.update_or_create(
            number=number,
            defaults={
                'kind': RoomKind.LONG_TERM,
                'base_rate': self._require_decimal(row.get('base_rate'), 'Rental Price'),
                'negotiated_rate': self._parse_decimal(row.get('negotiated_rate')),
                'status': status,
                'last_payment_date': last_payment,
                'payment_status': derive_payment_status(status, last_payment, local_today()),
                'security_deposit_paid': self._parse_bool(row.get('deposit_paid')),
                'notes': self._text(row.get('notes')),
            },
        )

        tenant_name = self._text(row.get('tenant_name'))
        if tenant_name:
            tenant = Tenant.objects.filter(room=room).first() or Tenant(room=room)
            tenant.name = tenant_name
            tenant.email = self._text(row.get('tenant_email'))
            tenant.move_in_date = self._parse_date(row.get('move_in_date'))
            tenant.move_out_date = self._parse_date(row.get('move_out_date'))
            tenant.save()

        return 'created' if created else 'updated'

    def _import_guest_room_row(self, row) -> str:
        from parsonage.models import Room

        number = self._text(row.get('room_number'))
        if not number:
            return 'skipped'

        raw_status = self._text(row.get('status')).lower() or 'available'
        if raw_status not in self.GUEST_ROOM_STATUS_MAPPING:
            raise ValueError(f"Unknown room status {raw_status!r}")

        _, created = Room.objects.update_or_create(
            number=number,
            defaults={
                'kind': RoomKind.GUEST,
                'name': self._text(row.get('name')),
                'base_rate': self._require_decimal(row.get('base_rate'), 'Daily Rate'),
                'weekly_rate': self._parse_decimal(row.get('weekly_rate')),
                'max_occupancy': self._parse_int(row.get('max_occupancy'), default=2),
                'status': self.GUEST_ROOM_STATUS_MAPPING[raw_status],
                'notes': self._text(row.get('notes')),
            },
        )
        return 'created' if created else 'updated'

    def _import_budget_row(self, row) -> str:
        from parsonage.models import LedgerEntry, Room

        entry_date = self._parse_date(row.get('entry_date'))
        if entry_date is None:
            raise ValueError(f"Invalid date {self._text(row.get('entry_date'))!r}")
        amount = self._require_decimal(row.get('amount'), 'Amount')
        description = self._text(row.get('description'))
        entry_type = self._text(row.get('entry_type'))

        # Rows already imported are left alone; the ledger is append-only.
        if LedgerEntry.objects.filter(
            entry_date=entry_date, amount=amount, description=description, entry_type=entry_type,
        ).exists():
            return 'skipped'

        # Legacy rows name the room in the description; keep an explicit
        # reference only when that room exists.
        room = None
        match = ROOM_REFERENCE.search(description)
        if match:
            room = Room.objects.filter(number__iexact=match.group(1)).first()

        LedgerEntry.objects.create(
            entry_date=entry_date,
            entry_type=entry_type,
            description=description,
            amount=amount,
            category=self._map_category(self._text(row.get('category')), entry_type),
            room=room,
        )
        return 'created'

    def _import_booking_row(self, row) -> str:
        from parsonage.models import Booking, Room

        room_ref = self._text(row.get('room_number'))
        room = (
            Room.objects.filter(number__iexact=room_ref).first()
            or Room.objects.filter(name__iexact=room_ref).first()
        )
        if room is None:
            raise ValueError(f"Unknown room {room_ref!r}")

        check_in = self._parse_date(row.get('check_in'))
        check_out = self._parse_date(row.get('check_out'))
        if check_in is None or check_out is None:
            raise ValueError("Check-in and check-out dates are required")

        status = self._text(row.get('status')) or BookingStatus.PENDING
        matches = [value for value in BookingStatus.values if value.lower() == status.lower()]
        if not matches:
            raise ValueError(f"Unknown booking status {status!r}")

        values = {
            'room': room,
            'guest_name': self._text(row.get('guest_name')),
            'guest_email': self._text(row.get('guest_email')),
            'guest_phone': self._text(row.get('guest_phone')),
            'check_in': check_in,
            'check_out': check_out,
            'guests': self._parse_int(row.get('guests'), default=1),
            'total_amount': self._parse_decimal(row.get('total_amount')) or Decimal('0.00'),
            'amount_paid': self._parse_decimal(row.get('amount_paid')) or Decimal('0.00'),
            'status': matches[0],
            'special_requests': self._text(row.get('special_requests')),
        }

        code = self._text(row.get('code'))
        existing = Booking.objects.filter(code=code).first() if code else None
        if existing is not None and existing.status != values['status']:
            # Imports may move a booking forward, never back.
            booking_lifecycle.assert_can_transition(existing.status, values['status'])

        if values['status'] in ACTIVE_BOOKING_STATUSES:
            self._check_room_free(room, check_in, check_out, existing)

        if existing is None:
            if code:
                values['code'] = code
            Booking.objects.create(**values)
            return 'created'
        for field, value in values.items():
            setattr(existing, field, value)
        existing.save()
        return 'updated'

    def _check_room_free(self, room, check_in, check_out, existing):
        store = DjangoTabularStore()
        store.lock_room(room.pk)
        bookings = store.list_bookings(room_id=room.pk, statuses=ACTIVE_BOOKING_STATUSES)
        exclude = existing.pk if existing is not None else None
        blocking = [
            booking for booking in bookings
            if booking.id != exclude
            and intervals_overlap(check_in, check_out, booking.check_in, booking.check_out)
        ]
        if blocking:
            raise BookingConflictError(
                f"Room {room.number} is already booked from {blocking[0].check_in} to "
                f"{blocking[0].check_out} ({blocking[0].code})",
                room_id=room.pk,
                conflicts=[booking.id for booking in blocking],
            )

    def _import_pricing_rule_row(self, row) -> str:
        from parsonage.models import PricingRule

        name = self._text(row.get('name'))
        if not name:
            return 'skipped'

        active = self._text(row.get('active')) or 'Yes'
        priority = self._parse_int(row.get('priority'), default=100)
        rule = parse_pricing_rule(
            name,
            self._text(row.get('rule_type')),
            self._text(row.get('condition')),
            self._text(row.get('adjustment')),
            priority,
            active,
        )

        _, created = PricingRule.objects.update_or_create(
            name=name,
            defaults={
                'rule_type': rule.rule_type,
                'condition': self._text(row.get('condition')),
                'adjustment': rule.adjustment,
                'priority': rule.priority,
                'active': rule.active,
                'notes': self._text(row.get('notes')),
            },
        )
        return 'created' if created else 'updated'

    # =========================================================================
    # VALUE PARSING
    # =========================================================================

    def _text(self, value) -> str:
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return ''
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        value = str(value).strip()
        return '' if value.lower() == 'nan' else value

    def _parse_date(self, value) -> Optional[date]:
        """Parse date from the formats the sheets have been exported with."""
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None

        if isinstance(value, (datetime, date)):
            return value.date() if isinstance(value, datetime) else value

        value = str(value).strip()
        if not value or value.lower() == 'nan' or value == '-':
            return None

        formats = [
            '%Y-%m-%d',              # 2024-06-10
            '%Y-%m-%d %H:%M:%S',     # 2024-06-10 00:00:00
            '%m/%d/%Y',              # 06/10/2024 (sheet locale)
            '%m/%d/%Y %H:%M:%S',     # 06/10/2024 14:05:00
            '%d %b %Y',              # 10 Jun 2024
            '%B %d, %Y',             # June 10, 2024
        ]
        for fmt in formats:
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue
        return None

    def _parse_decimal(self, value, default=None) -> Optional[Decimal]:
        text = self._text(value)
        if not text or text == '-':
            return default
        text = text.replace('$', '').replace(',', '').strip()
        try:
            return Decimal(text).quantize(Decimal('0.01'))
        except InvalidOperation:
            raise ValueError(f"{text!r} is not an amount")

    def _require_decimal(self, value, column) -> Decimal:
        amount = self._parse_decimal(value)
        if amount is None:
            raise ValueError(f"{column} is required")
        return amount

    def _parse_int(self, value, default: int = 0) -> int:
        text = self._text(value)
        if not text or text == '-':
            return default
        try:
            return int(float(text))
        except ValueError:
            return default

    def _parse_bool(self, value) -> bool:
        return self._text(value).lower() in ('yes', 'y', 'true', '1', 'paid')

    def _map_category(self, category: str, entry_type: str) -> str:
        for candidate in (category, entry_type):
            key = candidate.strip().lower()
            if key in self.CATEGORY_MAPPING:
                return self.CATEGORY_MAPPING[key]
            for word, mapped in self.CATEGORY_MAPPING.items():
                if word in key:
                    return mapped
        return LedgerCategory.OTHER

    def _build_result(self, sheet_import) -> Dict:
        """Build result dictionary from the import record."""
        return {
            'success': sheet_import.status in [ImportStatus.COMPLETED, ImportStatus.COMPLETED_WITH_ERRORS],
            'sheet_import_id': sheet_import.id,
            'filename': sheet_import.filename,
            'sheet': sheet_import.sheet,
            'status': sheet_import.status,
            'rows_total': sheet_import.rows_total,
            'rows_created': sheet_import.rows_created,
            'rows_updated': sheet_import.rows_updated,
            'rows_skipped': sheet_import.rows_skipped,
            'success_rate': float(sheet_import.success_rate),
            'errors': sheet_import.errors,
            'duration_seconds': sheet_import.duration_seconds,
        }

"""
Shared enumerations.

Values match the labels the property sheets have always used, so imported
rows and stored rows compare equal without translation.
"""

from django.db import models


class RoomKind(models.TextChoices):
    LONG_TERM = 'long_term', 'Long-term Room'
    GUEST = 'guest', 'Guest Room'


class RoomStatus(models.TextChoices):
    VACANT = 'Vacant', 'Vacant'
    OCCUPIED = 'Occupied', 'Occupied'
    PENDING = 'Pending', 'Pending'
    MAINTENANCE = 'Maintenance', 'Maintenance'


class PaymentStatus(models.TextChoices):
    NOT_APPLICABLE = 'N/A', 'Not Applicable'
    PAID = 'Paid', 'Paid'
    DUE = 'Due', 'Due'
    OVERDUE = 'Overdue', 'Overdue'


class BookingStatus(models.TextChoices):
    PENDING = 'Pending', 'Pending'
    CONFIRMED = 'Confirmed', 'Confirmed'
    CHECKED_IN = 'Checked In', 'Checked In'
    CHECKED_OUT = 'Checked Out', 'Checked Out'
    CANCELLED = 'Cancelled', 'Cancelled'


# Bookings in these states hold their room for the stay.
ACTIVE_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)

# Bookings in these states count as realized room-nights.
OCCUPIED_BOOKING_STATUSES = (BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT)


class RuleType(models.TextChoices):
    DAY_OF_WEEK = 'Day of Week', 'Day of Week'
    LENGTH_OF_STAY = 'Length of Stay', 'Length of Stay'
    BOOKING_WINDOW = 'Booking Window', 'Booking Window'
    DATE_RANGE = 'Date Range', 'Date Range'


class LedgerCategory(models.TextChoices):
    RENT = 'Rent', 'Rent'
    GUEST_ROOM = 'Guest Room', 'Guest Room'
    DEPOSIT = 'Deposit', 'Deposit'
    UTILITIES = 'Utilities', 'Utilities'
    MAINTENANCE = 'Maintenance', 'Maintenance'
    OTHER = 'Other', 'Other'


class IntakeKind(models.TextChoices):
    TENANT_APPLICATION = 'tenant_application', 'Tenant Application'
    MOVE_OUT_REQUEST = 'move_out_request', 'Move-Out Request'
    GUEST_BOOKING_REQUEST = 'guest_booking_request', 'Guest Booking Request'


class IntakeStatus(models.TextChoices):
    RECEIVED = 'received', 'Received'
    PROCESSED = 'processed', 'Processed'
    UNPLACED = 'unplaced', 'Received (no room available)'
    REJECTED = 'rejected', 'Rejected'


class ImportStatus(models.TextChoices):
    PROCESSING = 'processing', 'Processing'
    COMPLETED = 'completed', 'Completed'
    COMPLETED_WITH_ERRORS = 'completed_with_errors', 'Completed with Errors'
    FAILED = 'failed', 'Failed'

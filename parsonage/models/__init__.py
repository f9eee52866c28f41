"""
Parsonage models package.

Re-exports all models so migrations and imports work from one place:
    from parsonage.models import Room, Booking
"""

# Rooms: long-term and guest rooms, tenants
from .rooms import Room, Tenant

# Guest stays
from .bookings import Booking, generate_booking_code

# Budget ledger
from .ledger import LedgerEntry

# Pricing rules
from .pricing import PricingRule

# Forms and imports
from .intake import IntakeSubmission, SheetImport

__all__ = [
    'Room',
    'Tenant',
    'Booking',
    'generate_booking_code',
    'LedgerEntry',
    'PricingRule',
    'IntakeSubmission',
    'SheetImport',
]

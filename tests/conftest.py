"""
Shared fixtures.

Model fixtures need `db` and build a small property: an occupied and a
vacant long-term room, two guest rooms and one pending guest booking.
Record factories for engine tests live in tests/factories.py.
"""

from datetime import date
from decimal import Decimal

import pytest

from parsonage.constants import RoomKind, RoomStatus


@pytest.fixture(autouse=True)
def parsonage_settings(settings):
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    settings.PARSONAGE = {
        'PROPERTY_NAME': 'St. Mark Parsonage',
        'MANAGER_EMAIL': 'manager@example.com',
        'CURRENCY_SYMBOL': '$',
        'EMAIL_MAX_ATTEMPTS': 2,
        'EMAIL_TEMPLATES': {},
    }
    return settings


# =============================================================================
# MODEL FIXTURES
# =============================================================================

@pytest.fixture
def long_term_room(db):
    from parsonage.models import Room
    return Room.objects.create(
        number='101',
        kind=RoomKind.LONG_TERM,
        base_rate=Decimal('800.00'),
        status=RoomStatus.OCCUPIED,
        last_payment_date=date(2024, 5, 1),
    )


@pytest.fixture
def tenant(long_term_room):
    from parsonage.models import Tenant
    return Tenant.objects.create(
        name='Martha Jones',
        email='martha@example.com',
        room=long_term_room,
        move_in_date=date(2023, 9, 1),
    )


@pytest.fixture
def vacant_room(db):
    from parsonage.models import Room
    return Room.objects.create(
        number='102',
        kind=RoomKind.LONG_TERM,
        base_rate=Decimal('750.00'),
        negotiated_rate=Decimal('700.00'),
        status=RoomStatus.VACANT,
    )


@pytest.fixture
def guest_room(db):
    from parsonage.models import Room
    return Room.objects.create(
        number='G1',
        name='Guest Suite 1',
        kind=RoomKind.GUEST,
        base_rate=Decimal('100.00'),
        weekly_rate=Decimal('600.00'),
        max_occupancy=2,
    )


@pytest.fixture
def second_guest_room(db):
    from parsonage.models import Room
    return Room.objects.create(
        number='G2',
        name='Guest Suite 2',
        kind=RoomKind.GUEST,
        base_rate=Decimal('90.00'),
        max_occupancy=4,
    )


@pytest.fixture
def booking(guest_room):
    from parsonage.models import Booking
    return Booking.objects.create(
        room=guest_room,
        guest_name='Ada Lovelace',
        guest_email='ada@example.com',
        check_in=date(2024, 6, 10),
        check_out=date(2024, 6, 15),
        total_amount=Decimal('500.00'),
    )

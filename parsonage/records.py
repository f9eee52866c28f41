"""
Immutable snapshots passed between the tabular store and the engines.

The Django models own persistence; every engine in `parsonage.services`
works on these records only, so it can be exercised without a database.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .constants import BookingStatus, RoomKind, RoomStatus, LedgerCategory

ZERO = Decimal('0.00')


@dataclass(frozen=True)
class Room:
    """A rentable room, long-term or guest."""
    id: int
    number: str
    base_rate: Decimal
    status: str = RoomStatus.VACANT
    kind: str = RoomKind.LONG_TERM
    negotiated_rate: Optional[Decimal] = None
    name: str = ''
    weekly_rate: Optional[Decimal] = None
    max_occupancy: int = 2
    occupant_id: Optional[int] = None
    last_payment_date: Optional[date] = None

    @property
    def billing_rate(self) -> Decimal:
        """Negotiated rate when one was agreed, otherwise the base rate."""
        if self.negotiated_rate is not None:
            return self.negotiated_rate
        return self.base_rate

    @property
    def label(self) -> str:
        return self.name or f"Room {self.number}"


@dataclass(frozen=True)
class Tenant:
    id: int
    name: str
    email: str
    move_in_date: Optional[date] = None
    move_out_date: Optional[date] = None
    room_id: Optional[int] = None
    phone: str = ''


@dataclass(frozen=True)
class LedgerEntry:
    """
    One signed budget line: positive amounts are income, negative expenses.

    `room_id` and `booking_id` are the explicit links to what the money
    belongs to; descriptions are free text and never parsed.
    """
    entry_date: date
    amount: Decimal
    category: str = LedgerCategory.OTHER
    entry_type: str = ''
    description: str = ''
    room_id: Optional[int] = None
    booking_id: Optional[int] = None
    id: Optional[int] = None

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def is_expense(self) -> bool:
        return self.amount < 0


@dataclass(frozen=True)
class Booking:
    """
    Short-term guest stay over the half-open night interval [check_in, check_out).
    """
    id: int
    room_id: int
    check_in: date
    check_out: date
    status: str = BookingStatus.PENDING
    guest_name: str = ''
    guest_email: str = ''
    guest_phone: str = ''
    guests: int = 1
    total_amount: Decimal = ZERO
    amount_paid: Decimal = ZERO
    code: str = ''
    special_requests: str = ''
    booked_on: Optional[date] = None

    def __post_init__(self):
        # Raises InvalidRangeError for check_out <= check_in.
        self.nights

    @property
    def nights(self) -> int:
        from .services.dates import nights_between
        return nights_between(self.check_in, self.check_out)

    @property
    def balance_due(self) -> Decimal:
        return self.total_amount - self.amount_paid

    @property
    def is_fully_paid(self) -> bool:
        return self.amount_paid >= self.total_amount


@dataclass(frozen=True)
class PricingRule:
    """
    Validated pricing rule.

    `condition` is the normalized payload for `rule_type`; build instances
    with `pricing_service.parse_pricing_rule` rather than by hand.
    """
    name: str
    rule_type: str
    percent: Decimal
    priority: int = 100
    active: bool = True
    condition: Dict = field(default_factory=dict)
    adjustment: str = ''

    @property
    def multiplier(self) -> Decimal:
        return Decimal('1') + self.percent / Decimal('100')


# =============================================================================
# RESULTS
# =============================================================================

@dataclass(frozen=True)
class PriceQuote:
    base_rate: Decimal
    rate: Decimal
    nights: int
    applied: Tuple[str, ...] = ()
    adjustments: Tuple[str, ...] = ()

    @property
    def total(self) -> Decimal:
        return self.rate * self.nights


@dataclass(frozen=True)
class RevenueSummary:
    start: date
    end: date
    income: Decimal
    expenses: Decimal
    by_category: Dict[str, Decimal]
    entry_count: int = 0
    category: Optional[str] = None

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


@dataclass(frozen=True)
class OccupancyReport:
    start: date
    end: date
    room_count: int
    occupied_nights: int
    possible_nights: int

    @property
    def rate(self) -> Decimal:
        """Occupied room-nights over possible room-nights, as a ratio."""
        if not self.possible_nights:
            return Decimal('0')
        return (Decimal(self.occupied_nights) / Decimal(self.possible_nights)).quantize(Decimal('0.0001'))

    @property
    def percent(self) -> Decimal:
        return (self.rate * 100).quantize(Decimal('0.1'))


@dataclass(frozen=True)
class OutgoingEmail:
    """A message the notification sink should deliver."""
    to: Tuple[str, ...]
    subject: str
    body: str
    kind: str = ''
    reference: str = ''
    attachments: Tuple[Tuple[str, bytes, str], ...] = ()


@dataclass(frozen=True)
class DispatchFailure:
    email: OutgoingEmail
    error: str
    attempts: int


@dataclass
class DispatchReport:
    sent: int = 0
    failures: list = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.sent + len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def merge(self, other):
        self.sent += other.sent
        self.failures.extend(other.failures)
        return self

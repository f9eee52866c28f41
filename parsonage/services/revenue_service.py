"""
Revenue and occupancy aggregation over ledger and booking snapshots.
"""

from collections import defaultdict
from decimal import Decimal

from parsonage.constants import LedgerCategory, OCCUPIED_BOOKING_STATUSES, RoomKind, RoomStatus
from parsonage.records import OccupancyReport, RevenueSummary, ZERO

from .dates import as_date, clipped_nights, days_in_period, month_bounds, month_key, MONTH_NAMES


def _in_period(entry, start, end):
    return start <= as_date(entry.entry_date) <= end


class RevenueAggregator:
    """
    Buckets ledger entries and bookings into reports.

    Usage:
        aggregator = RevenueAggregator()
        summary = aggregator.summarize(entries, date(2024, 3, 1), date(2024, 3, 31))
        print(summary.income, summary.expenses, summary.net)
    """

    def summarize(self, entries, start, end, category=None):
        """
        Income, expenses and per-category totals for [start, end] inclusive.

        Args:
            entries: LedgerEntry snapshots
            start, end: inclusive period bounds
            category: optional LedgerCategory to restrict to

        Returns:
            RevenueSummary. Expenses are a positive magnitude; zero-amount
            entries are counted but add to neither bucket.

        Raises:
            InvalidRangeError: when end is before start
        """
        days_in_period(start, end)

        income = ZERO
        expenses = ZERO
        by_category = defaultdict(lambda: ZERO)
        count = 0

        for entry in entries:
            if not _in_period(entry, start, end):
                continue
            if category is not None and entry.category != category:
                continue
            count += 1
            by_category[entry.category] += entry.amount
            if entry.amount > 0:
                income += entry.amount
            elif entry.amount < 0:
                expenses += -entry.amount

        return RevenueSummary(
            start=start,
            end=end,
            income=income,
            expenses=expenses,
            by_category=dict(by_category),
            entry_count=count,
            category=category,
        )

    def monthly_breakdown(self, entries, year):
        """
        Income per month of `year`, split into rent, guest room and other.

        Returns:
            List of 12 dicts ordered January to December:
            {'month': 'YYYY-MM', 'name', 'rent', 'guest_room', 'other',
             'income', 'expenses', 'net'}
        """
        months = {}
        for number in range(1, 13):
            start, _ = month_bounds(year, number)
            months[month_key(start)] = {
                'month': month_key(start),
                'name': MONTH_NAMES[number - 1],
                'rent': ZERO,
                'guest_room': ZERO,
                'other': ZERO,
                'income': ZERO,
                'expenses': ZERO,
            }

        for entry in entries:
            bucket = months.get(month_key(entry.entry_date))
            if bucket is None:
                continue
            if entry.amount < 0:
                bucket['expenses'] += -entry.amount
                continue
            if entry.category == LedgerCategory.RENT:
                bucket['rent'] += entry.amount
            elif entry.category == LedgerCategory.GUEST_ROOM:
                bucket['guest_room'] += entry.amount
            else:
                bucket['other'] += entry.amount
            bucket['income'] += entry.amount

        rows = list(months.values())
        for row in rows:
            row['net'] = row['income'] - row['expenses']
        return rows

    def revenue_by_room(self, entries, start, end, category=None):
        """Signed totals per referenced room id; entries without a room are skipped."""
        totals = defaultdict(lambda: ZERO)
        for entry in entries:
            if entry.room_id is None or not _in_period(entry, start, end):
                continue
            if category is not None and entry.category != category:
                continue
            totals[entry.room_id] += entry.amount
        return dict(totals)

    def occupancy(self, bookings, start, end, room_count, room_ids=None):
        """
        Occupied room-nights over possible room-nights for [start, end].

        Only Checked In and Checked Out bookings count; each stay is
        clipped to the period before its nights are counted.
        """
        days = days_in_period(start, end)

        occupied = 0
        for booking in bookings:
            if booking.status not in OCCUPIED_BOOKING_STATUSES:
                continue
            if room_ids is not None and booking.room_id not in room_ids:
                continue
            occupied += clipped_nights(booking.check_in, booking.check_out, start, end)

        return OccupancyReport(
            start=start,
            end=end,
            room_count=room_count,
            occupied_nights=occupied,
            possible_nights=room_count * days,
        )

    def current_occupancy(self, rooms):
        """
        Occupied rooms right now, per room kind and overall.

        Returns:
            {'long_term': {...}, 'guest': {...}, 'overall': {...}} where each
            value holds 'total', 'occupied' and 'percent'.
        """
        counts = {kind: {'total': 0, 'occupied': 0} for kind in RoomKind.values}
        for room in rooms:
            bucket = counts.setdefault(str(room.kind), {'total': 0, 'occupied': 0})
            bucket['total'] += 1
            if room.status == RoomStatus.OCCUPIED:
                bucket['occupied'] += 1

        counts['overall'] = {
            'total': sum(c['total'] for c in counts.values()),
            'occupied': sum(c['occupied'] for c in counts.values()),
        }
        for bucket in counts.values():
            bucket['percent'] = _percent(bucket['occupied'], bucket['total'])
        return counts


def _percent(part, whole):
    if not whole:
        return Decimal('0.0')
    return (Decimal(part) * 100 / Decimal(whole)).quantize(Decimal('0.1'))

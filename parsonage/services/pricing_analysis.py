"""
Guest room pricing analysis: trailing-year booking history and rate
recommendations derived from it.
"""

import calendar
from collections import defaultdict
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from dateutil.relativedelta import relativedelta

from parsonage.constants import OCCUPIED_BOOKING_STATUSES, RoomKind

from .dates import as_date, is_weekend, iter_nights, month_key, today as local_today

CENTS = Decimal('0.01')
TENTHS = Decimal('0.1')

DEFAULT_AVERAGE_DAILY_RATE = Decimal('70')

# (occupancy floor %, weekday multiplier, weekend multiplier, reasoning)
OCCUPANCY_TIERS = [
    (Decimal('80'), Decimal('1.15'), Decimal('1.30'),
     'High occupancy (>80%) suggests room for price increase'),
    (Decimal('60'), Decimal('1.05'), Decimal('1.20'),
     'Good occupancy (60-80%) supports current pricing with weekend premium'),
    (None, Decimal('0.90'), Decimal('1.00'),
     'Lower occupancy (<60%) suggests more competitive pricing needed'),
]

WEEKLY_FACTOR = Decimal('6.5')
MONTHLY_FACTOR = Decimal('25')

HIGH_SEASON_OCCUPANCY = Decimal('80')
LOW_SEASON_OCCUPANCY = Decimal('40')


def _percent(part, whole):
    if not whole:
        return Decimal('0.0')
    return (Decimal(part) * 100 / Decimal(whole)).quantize(TENTHS, rounding=ROUND_HALF_UP)


class PricingAnalysisService:
    """
    Analyzes realized guest stays and recommends nightly rates.

    Usage:
        service = PricingAnalysisService(today=date(2024, 12, 31))
        analysis = service.analyze_history(bookings, room_count=2)
        recommendations = service.recommend(analysis, guest_rooms)
    """

    def __init__(self, today=None):
        self.today = as_date(today) if today is not None else local_today()

    # =========================================================================
    # HISTORY
    # =========================================================================

    def analyze_history(self, bookings, room_count):
        """
        Summarize Checked In / Checked Out stays that began in the last year.

        Args:
            bookings: Booking snapshots
            room_count: number of guest rooms the occupancy is measured against

        Returns:
            Dict with total_bookings, total_nights, total_revenue,
            average_stay, average_rate, occupancy_rate, weekday_nights,
            weekend_nights, weekday_occupancy, weekend_occupancy and
            seasonal_data ({'YYYY-MM': nights}).
        """
        start = self.today - relativedelta(years=1)

        total_bookings = 0
        total_nights = 0
        total_revenue = Decimal('0')
        weekday_nights = 0
        weekend_nights = 0
        seasonal_data = defaultdict(int)

        for booking in bookings:
            if booking.status not in OCCUPIED_BOOKING_STATUSES or booking.check_in < start:
                continue
            total_bookings += 1
            total_nights += booking.nights
            total_revenue += booking.total_amount
            for night in iter_nights(booking.check_in, booking.check_out):
                if is_weekend(night):
                    weekend_nights += 1
                else:
                    weekday_nights += 1
                seasonal_data[month_key(night)] += 1

        possible_weekdays, possible_weekend_days = self._day_counts(start, self.today)
        possible_days = possible_weekdays + possible_weekend_days

        return {
            'period_start': start,
            'period_end': self.today,
            'room_count': room_count,
            'total_bookings': total_bookings,
            'total_nights': total_nights,
            'total_revenue': total_revenue.quantize(CENTS),
            'average_stay': (
                (Decimal(total_nights) / total_bookings).quantize(TENTHS, rounding=ROUND_HALF_UP)
                if total_bookings else Decimal('0.0')
            ),
            'average_rate': (
                (total_revenue / total_nights).quantize(CENTS, rounding=ROUND_HALF_UP)
                if total_nights else Decimal('0.00')
            ),
            'occupancy_rate': _percent(total_nights, possible_days * room_count),
            'weekday_nights': weekday_nights,
            'weekend_nights': weekend_nights,
            'weekday_occupancy': _percent(weekday_nights, possible_weekdays * room_count),
            'weekend_occupancy': _percent(weekend_nights, possible_weekend_days * room_count),
            'seasonal_data': dict(sorted(seasonal_data.items())),
        }

    def _day_counts(self, start, end):
        """(weekdays, weekend days) in the half-open range [start, end)."""
        weekdays = weekend = 0
        day = start
        while day < end:
            if is_weekend(day):
                weekend += 1
            else:
                weekdays += 1
            day += timedelta(days=1)
        return weekdays, weekend

    def monthly_occupancy(self, seasonal_data, room_count):
        """Occupancy percent per 'YYYY-MM' key of `seasonal_data`."""
        occupancy = {}
        for key, nights in seasonal_data.items():
            year, month = (int(part) for part in key.split('-'))
            possible = calendar.monthrange(year, month)[1] * room_count
            occupancy[key] = _percent(nights, possible)
        return occupancy

    # =========================================================================
    # RECOMMENDATIONS
    # =========================================================================

    def current_rates(self, rooms):
        """Average nightly and weekly rate across guest rooms."""
        rates = [room for room in rooms if room.kind == RoomKind.GUEST and room.base_rate]
        if not rates:
            return {
                'average_daily': DEFAULT_AVERAGE_DAILY_RATE,
                'average_weekly': DEFAULT_AVERAGE_DAILY_RATE * 6,
            }
        daily = sum(room.base_rate for room in rates) / len(rates)
        weekly = sum(room.weekly_rate or room.base_rate * 7 for room in rates) / len(rates)
        return {
            'average_daily': daily.quantize(CENTS, rounding=ROUND_HALF_UP),
            'average_weekly': weekly.quantize(CENTS, rounding=ROUND_HALF_UP),
        }

    def recommend(self, analysis, rooms):
        """
        Recommend rates from an `analyze_history` result.

        Returns:
            Dict with weekday_rate, weekend_rate, weekly_rate, monthly_rate,
            seasonal_adjustments ({'YYYY-MM': '+15%' | '-10%'}), reasoning
            lines, projected_revenue and revenue_change.
        """
        average_daily = self.current_rates(rooms)['average_daily']
        occupancy = analysis['occupancy_rate']
        reasoning = []

        for floor, weekday_factor, weekend_factor, reason in OCCUPANCY_TIERS:
            if floor is None or occupancy > floor:
                weekday_rate = average_daily * weekday_factor
                weekend_rate = average_daily * weekend_factor
                reasoning.append(reason)
                break

        seasonal_adjustments = {}
        monthly = self.monthly_occupancy(analysis['seasonal_data'], analysis['room_count'])
        for key, value in monthly.items():
            if value > HIGH_SEASON_OCCUPANCY:
                seasonal_adjustments[key] = '+15%'
            elif value < LOW_SEASON_OCCUPANCY:
                seasonal_adjustments[key] = '-10%'

        if analysis['weekend_occupancy'] > analysis['weekday_occupancy'] * Decimal('1.2'):
            reasoning.append('Weekend demand is significantly higher - consider larger weekend premium')

        projected = (
            analysis['weekday_nights'] * weekday_rate
            + analysis['weekend_nights'] * weekend_rate
        ).quantize(CENTS, rounding=ROUND_HALF_UP)

        return {
            'weekday_rate': weekday_rate.quantize(CENTS, rounding=ROUND_HALF_UP),
            'weekend_rate': weekend_rate.quantize(CENTS, rounding=ROUND_HALF_UP),
            'weekly_rate': (weekday_rate * WEEKLY_FACTOR).quantize(CENTS, rounding=ROUND_HALF_UP),
            'monthly_rate': (weekday_rate * MONTHLY_FACTOR).quantize(CENTS, rounding=ROUND_HALF_UP),
            'seasonal_adjustments': seasonal_adjustments,
            'monthly_occupancy': monthly,
            'reasoning': reasoning,
            'projected_revenue': projected,
            'revenue_change': projected - analysis['total_revenue'],
        }

"""Tests for guest room pricing analysis and recommendations."""

from datetime import date
from decimal import Decimal

import pytest

from parsonage.constants import BookingStatus
from parsonage.services.pricing_analysis import PricingAnalysisService

from .factories import make_booking, make_guest_room, make_room


@pytest.fixture
def service():
    return PricingAnalysisService(today=date(2024, 12, 31))


@pytest.fixture
def history():
    return [
        # Friday and Saturday night
        make_booking(id=1, check_in=date(2024, 6, 14), check_out=date(2024, 6, 16),
                     status=BookingStatus.CHECKED_OUT, total_amount=Decimal('200')),
        # Monday to Thursday morning
        make_booking(id=2, check_in=date(2024, 12, 2), check_out=date(2024, 12, 5),
                     status=BookingStatus.CHECKED_IN, total_amount=Decimal('300')),
        make_booking(id=3, check_in=date(2024, 8, 1), check_out=date(2024, 8, 9),
                     status=BookingStatus.CANCELLED, total_amount=Decimal('800')),
        make_booking(id=4, check_in=date(2023, 12, 20), check_out=date(2023, 12, 23),
                     status=BookingStatus.CHECKED_OUT, total_amount=Decimal('300')),
    ]


class TestAnalyzeHistory:

    def test_counts_realized_stays_from_the_last_year(self, service, history):
        analysis = service.analyze_history(history, room_count=1)

        assert analysis['total_bookings'] == 2
        assert analysis['total_nights'] == 5
        assert analysis['total_revenue'] == Decimal('500.00')
        assert analysis['average_stay'] == Decimal('2.5')
        assert analysis['average_rate'] == Decimal('100.00')
        assert analysis['weekday_nights'] == 4
        assert analysis['weekend_nights'] == 1
        assert analysis['seasonal_data'] == {'2024-06': 2, '2024-12': 3}

    def test_empty_history(self, service):
        analysis = service.analyze_history([], room_count=2)
        assert analysis['total_bookings'] == 0
        assert analysis['average_rate'] == Decimal('0.00')
        assert analysis['occupancy_rate'] == Decimal('0.0')


class TestRecommend:

    def test_low_occupancy_recommends_competitive_rates(self, service, history):
        analysis = service.analyze_history(history, room_count=1)
        result = service.recommend(analysis, [make_guest_room(base_rate='100.00'), make_room()])

        assert result['weekday_rate'] == Decimal('90.00')
        assert result['weekend_rate'] == Decimal('100.00')
        assert result['weekly_rate'] == Decimal('585.00')
        assert result['monthly_rate'] == Decimal('2250.00')
        assert result['seasonal_adjustments'] == {'2024-06': '-10%', '2024-12': '-10%'}
        assert result['projected_revenue'] == Decimal('460.00')
        assert result['revenue_change'] == Decimal('-40.00')
        assert result['reasoning'] == ['Lower occupancy (<60%) suggests more competitive pricing needed']

    def test_high_occupancy_and_weekend_demand(self, service):
        analysis = {
            'room_count': 1,
            'occupancy_rate': Decimal('85.0'),
            'weekday_occupancy': Decimal('50.0'),
            'weekend_occupancy': Decimal('90.0'),
            'weekday_nights': 10,
            'weekend_nights': 4,
            'total_revenue': Decimal('1000.00'),
            'seasonal_data': {'2024-07': 30},
        }
        result = service.recommend(analysis, [make_guest_room(base_rate='100.00')])

        assert result['weekday_rate'] == Decimal('115.00')
        assert result['weekend_rate'] == Decimal('130.00')
        assert result['seasonal_adjustments'] == {'2024-07': '+15%'}
        assert len(result['reasoning']) == 2
        assert result['projected_revenue'] == Decimal('1670.00')

    def test_current_rates_default_without_guest_rooms(self, service):
        rates = service.current_rates([make_room()])
        assert rates['average_daily'] == Decimal('70')
        assert rates['average_weekly'] == Decimal('420')

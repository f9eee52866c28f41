"""Tests for pricing rule parsing and dynamic guest room quotes."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from parsonage.constants import RuleType
from parsonage.exceptions import InvalidRangeError, InvalidRuleError
from parsonage.services.pricing_service import (
    DEFAULT_PRICING_RULES,
    PricingService,
    describe_condition,
    format_adjustment,
    parse_adjustment,
    parse_pricing_rule,
    parse_pricing_rules,
)

# 2024-06-14 is a Friday
FRIDAY = date(2024, 6, 14)
BOOKED_ON = date(2024, 6, 1)


def weekend_premium(priority=1):
    return parse_pricing_rule('Weekend Premium', RuleType.DAY_OF_WEEK, 'Friday, Saturday', '+20%', priority)


def weekly_discount(priority=2):
    return parse_pricing_rule('Weekly Discount', RuleType.LENGTH_OF_STAY, '7+ nights', '-10%', priority)


class TestRuleParsing:

    @pytest.mark.parametrize('value,expected', [
        ('+20%', Decimal('20')),
        ('-10%', Decimal('-10')),
        (' 15 ', Decimal('15')),
        ('-2.5 %', Decimal('-2.5')),
        (5, Decimal('5')),
    ])
    def test_adjustments(self, value, expected):
        assert parse_adjustment(value) == expected

    @pytest.mark.parametrize('value', ['twenty percent', '', None, '+%', '10%%'])
    def test_malformed_adjustment_raises(self, value):
        with pytest.raises(InvalidRuleError):
            parse_adjustment(value)

    def test_format_adjustment(self):
        assert format_adjustment(Decimal('20')) == '+20%'
        assert format_adjustment(Decimal('-10.0')) == '-10%'
        assert format_adjustment(Decimal('2.5')) == '+2.5%'

    def test_sheet_conditions_are_normalized(self):
        rules = {rule.name: rule for rule in parse_pricing_rules(DEFAULT_PRICING_RULES)}

        assert rules['Weekend Premium'].condition == {'days': [4, 5]}
        assert rules['Weekly Discount'].condition == {'min_nights': 7, 'max_nights': None}
        assert rules['High Season'].condition == {'months': [6, 7, 8]}
        assert rules['Last Minute'].condition == {'same_day': True, 'min_days': None, 'max_days': None}
        assert rules['Advance Booking'].condition['min_days'] == 30

    def test_dict_conditions(self):
        rule = parse_pricing_rule('Holidays', 'DateRange', {'start': '2024-12-20', 'end': '2025-01-02'}, '+25%')
        assert rule.rule_type == RuleType.DATE_RANGE
        assert rule.condition == {'start': '2024-12-20', 'end': '2025-01-02'}

        rule = parse_pricing_rule('Weekends', 'day_of_week', {'days': ['Saturday']}, '+10%')
        assert rule.rule_type == RuleType.DAY_OF_WEEK
        assert rule.condition == {'days': [5]}

    @pytest.mark.parametrize('rule_type,condition', [
        (RuleType.DAY_OF_WEEK, 'Funday'),
        (RuleType.LENGTH_OF_STAY, 'a long time'),
        (RuleType.BOOKING_WINDOW, 'whenever'),
        (RuleType.DATE_RANGE, 'Smarch'),
        (RuleType.DATE_RANGE, 'Junk-August'),
        (RuleType.DAY_OF_WEEK, 'Monkey, Friday'),
        (RuleType.DATE_RANGE, {'start': '2024-12-20', 'end': '2024-12-01'}),
    ])
    def test_malformed_conditions_raise(self, rule_type, condition):
        with pytest.raises(InvalidRuleError):
            parse_pricing_rule('Broken', rule_type, condition, '+10%')

    def test_malformed_priority_raises(self):
        with pytest.raises(InvalidRuleError):
            parse_pricing_rule('Broken', RuleType.DAY_OF_WEEK, 'Friday', '+10%', priority='first')

    def test_active_flag_from_sheet(self):
        assert parse_pricing_rule('R', RuleType.DAY_OF_WEEK, 'Friday', '+10%', active='Yes').active
        assert not parse_pricing_rule('R', RuleType.DAY_OF_WEEK, 'Friday', '+10%', active='No').active

    def test_describe_condition(self):
        assert describe_condition(weekend_premium()) == 'Friday, Saturday'
        assert describe_condition(weekly_discount()) == '7+ nights'


class TestQuote:

    def test_rules_compound_in_priority_order(self):
        service = PricingService([weekend_premium(), weekly_discount()])
        quote = service.quote(Decimal('100'), FRIDAY, date(2024, 6, 21), now=BOOKED_ON)

        assert quote.rate == Decimal('108.00')
        assert quote.applied == ('Weekend Premium', 'Weekly Discount')
        assert quote.adjustments == ('Weekend Premium: +20%', 'Weekly Discount: -10%')
        assert quote.nights == 7
        assert quote.total == Decimal('756.00')

    def test_applied_list_follows_priority_not_input_order(self):
        service = PricingService([weekend_premium(priority=2), weekly_discount(priority=1)])
        quote = service.quote(Decimal('100'), FRIDAY, date(2024, 6, 21), now=BOOKED_ON)

        assert quote.rate == Decimal('108.00')
        assert quote.applied == ('Weekly Discount', 'Weekend Premium')

    def test_equal_priorities_keep_input_order(self):
        first = parse_pricing_rule('First', RuleType.DAY_OF_WEEK, 'Friday', '+10%', 5)
        second = parse_pricing_rule('Second', RuleType.DAY_OF_WEEK, 'Friday', '+10%', 5)
        quote = PricingService([first, second]).quote(Decimal('100'), FRIDAY, date(2024, 6, 15), now=BOOKED_ON)
        assert quote.applied == ('First', 'Second')
        assert quote.rate == Decimal('121.00')

    def test_unmatched_rules_leave_rate_alone(self):
        service = PricingService([weekend_premium(), weekly_discount()])
        # Tuesday, three nights
        quote = service.quote(Decimal('100'), date(2024, 6, 11), date(2024, 6, 14), now=BOOKED_ON)
        assert quote.rate == Decimal('100.00')
        assert quote.applied == ()

    def test_inactive_rules_are_skipped(self):
        inactive = parse_pricing_rule('Weekend Premium', RuleType.DAY_OF_WEEK, 'Friday', '+20%', 1, active=False)
        quote = PricingService([inactive]).quote(Decimal('100'), FRIDAY, date(2024, 6, 16), now=BOOKED_ON)
        assert quote.rate == Decimal('100.00')

    def test_unknown_rule_type_is_a_no_op(self):
        holiday = parse_pricing_rule('Holiday', 'Holiday Special', 'Dec 25', '+50%', 1)
        assert holiday.condition == {'raw': 'Dec 25'}
        quote = PricingService([holiday]).quote(Decimal('100'), FRIDAY, date(2024, 6, 16), now=BOOKED_ON)
        assert quote.rate == Decimal('100.00')

    def test_rate_is_rounded_half_up_to_cents(self):
        half = parse_pricing_rule('Half', RuleType.LENGTH_OF_STAY, '1+ nights', '-50%', 1)
        quote = PricingService([half]).quote(Decimal('10.05'), FRIDAY, date(2024, 6, 15), now=BOOKED_ON)
        assert quote.rate == Decimal('5.03')

    def test_zero_night_stay_raises(self):
        with pytest.raises(InvalidRangeError):
            PricingService([]).quote(Decimal('100'), FRIDAY, FRIDAY, now=BOOKED_ON)


class TestDefaultRules:

    @pytest.fixture
    def service(self):
        return PricingService.from_rows(DEFAULT_PRICING_RULES)

    def test_summer_week_from_friday(self, service):
        # Weekend +20%, weekly -10%, high season +15%
        quote = service.quote(Decimal('75'), date(2024, 7, 5), date(2024, 7, 12), now=date(2024, 7, 1))
        assert quote.applied == ('Weekend Premium', 'Weekly Discount', 'High Season')
        assert quote.rate == Decimal('93.15')

    def test_low_season(self, service):
        quote = service.quote(Decimal('100'), date(2024, 1, 16), date(2024, 1, 18), now=date(2024, 1, 10))
        assert quote.applied == ('Low Season',)
        assert quote.rate == Decimal('90.00')

    def test_advance_booking(self, service):
        quote = service.quote(Decimal('100'), date(2024, 3, 5), date(2024, 3, 8), now=date(2024, 1, 1))
        assert quote.applied == ('Advance Booking',)
        assert quote.rate == Decimal('95.00')

    def test_last_minute_only_on_checkin_day(self, service):
        same_day = service.quote(Decimal('100'), date(2024, 3, 12), date(2024, 3, 13),
                                 now=datetime(2024, 3, 12, 15, 0))
        evening_before = service.quote(Decimal('100'), date(2024, 3, 12), date(2024, 3, 13),
                                       now=datetime(2024, 3, 11, 23, 0))

        assert same_day.applied == ('Last Minute',)
        assert same_day.rate == Decimal('85.00')
        assert evening_before.applied == ()

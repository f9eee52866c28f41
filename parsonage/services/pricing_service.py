"""
Dynamic guest room pricing.

Calculation Flow:
1. Keep active rules only
2. Sort by priority, lowest first (stable for equal priorities)
3. For each rule whose condition matches the stay, multiply the running
   rate by (1 + percent / 100)
4. Round the final nightly rate to cents

Adjustments compound in priority order, so the applied list always reads
in the order the multipliers were taken.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from parsonage.constants import RuleType
from parsonage.exceptions import InvalidRuleError
from parsonage.records import PriceQuote, PricingRule

from .dates import (
    DAY_NAMES,
    as_date,
    booking_window_days,
    nights_between,
    parse_day_names,
    parse_month_span,
)

CENTS = Decimal('0.01')

ADJUSTMENT_PATTERN = re.compile(r'^\s*([+-]?\s*\d+(?:\.\d+)?)\s*%?\s*$')

RULE_TYPE_ALIASES = {
    re.sub(r'[^a-z]', '', choice.value.lower()): choice.value
    for choice in RuleType
}

DEFAULT_PRICING_RULES = [
    {'name': 'Weekend Premium', 'rule_type': RuleType.DAY_OF_WEEK, 'condition': 'Friday, Saturday',
     'adjustment': '+20%', 'priority': 1, 'active': True, 'notes': 'Applied to weekend nights'},
    {'name': 'Weekly Discount', 'rule_type': RuleType.LENGTH_OF_STAY, 'condition': '7+ nights',
     'adjustment': '-10%', 'priority': 2, 'active': True, 'notes': 'Discount for week-long stays'},
    {'name': 'Monthly Discount', 'rule_type': RuleType.LENGTH_OF_STAY, 'condition': '28+ nights',
     'adjustment': '-20%', 'priority': 3, 'active': True, 'notes': 'Discount for monthly stays'},
    {'name': 'High Season', 'rule_type': RuleType.DATE_RANGE, 'condition': 'June-August',
     'adjustment': '+15%', 'priority': 4, 'active': True, 'notes': 'Summer peak pricing'},
    {'name': 'Low Season', 'rule_type': RuleType.DATE_RANGE, 'condition': 'January-February',
     'adjustment': '-10%', 'priority': 5, 'active': True, 'notes': 'Winter discount'},
    {'name': 'Last Minute', 'rule_type': RuleType.BOOKING_WINDOW, 'condition': 'Same day',
     'adjustment': '-15%', 'priority': 6, 'active': True, 'notes': 'Fill empty rooms'},
    {'name': 'Advance Booking', 'rule_type': RuleType.BOOKING_WINDOW, 'condition': '30+ days',
     'adjustment': '-5%', 'priority': 7, 'active': True, 'notes': 'Reward early bookings'},
]


# =============================================================================
# RULE PARSING
# =============================================================================

def parse_adjustment(value):
    """
    Parse "+20%", "-10%", "15" or a number into a signed percentage.

    Raises InvalidRuleError for anything that is not a number.
    """
    if isinstance(value, (int, Decimal)) and not isinstance(value, bool):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))

    match = ADJUSTMENT_PATTERN.match(str(value or ''))
    if not match:
        raise InvalidRuleError(f"Adjustment {value!r} is not a percentage", adjustment=str(value))
    try:
        return Decimal(match.group(1).replace(' ', ''))
    except InvalidOperation:
        raise InvalidRuleError(f"Adjustment {value!r} is not a percentage", adjustment=str(value))


def format_adjustment(percent):
    percent = Decimal(percent).normalize()
    if percent == percent.to_integral():
        percent = percent.quantize(Decimal('1'))
    sign = '+' if percent >= 0 else ''
    return f"{sign}{percent}%"


def normalize_rule_type(value):
    """Map "Day of Week", "DayOfWeek" or "day_of_week" to a RuleType value; unknown types pass through."""
    key = re.sub(r'[^a-z]', '', str(value or '').lower())
    return RULE_TYPE_ALIASES.get(key, str(value or '').strip())


def parse_active(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('yes', 'y', 'true', '1', 'active')


def _int_or_none(value, field_name, rule_name):
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRuleError(
            f"Rule {rule_name!r}: {field_name} must be a whole number, got {value!r}",
            rule=rule_name,
        )


def parse_condition(rule_type, condition, rule_name=''):
    """
    Normalize a rule condition into its payload for `rule_type`.

    Accepts the sheet's free-text conditions as well as dict payloads.
    Unknown rule types keep their condition as-is.
    """
    if rule_type == RuleType.DAY_OF_WEEK:
        days = condition.get('days', []) if isinstance(condition, dict) else condition
        try:
            parsed = parse_day_names(days or [])
        except ValueError as exc:
            raise InvalidRuleError(f"Rule {rule_name!r}: {exc}", rule=rule_name)
        if not parsed:
            raise InvalidRuleError(f"Rule {rule_name!r}: no days given", rule=rule_name)
        return {'days': parsed}

    if rule_type == RuleType.LENGTH_OF_STAY:
        if isinstance(condition, dict):
            min_nights = _int_or_none(condition.get('min_nights'), 'min_nights', rule_name)
            max_nights = _int_or_none(condition.get('max_nights'), 'max_nights', rule_name)
        else:
            numbers = re.findall(r'\d+', str(condition or ''))
            if not numbers:
                raise InvalidRuleError(f"Rule {rule_name!r}: no night count in {condition!r}", rule=rule_name)
            min_nights = int(numbers[0])
            max_nights = int(numbers[1]) if len(numbers) > 1 else None
        if min_nights is None:
            raise InvalidRuleError(f"Rule {rule_name!r}: min_nights is required", rule=rule_name)
        return {'min_nights': min_nights, 'max_nights': max_nights}

    if rule_type == RuleType.BOOKING_WINDOW:
        if isinstance(condition, dict):
            payload = {
                'same_day': bool(condition.get('same_day', False)),
                'min_days': _int_or_none(condition.get('min_days'), 'min_days', rule_name),
                'max_days': _int_or_none(condition.get('max_days'), 'max_days', rule_name),
            }
        else:
            text = str(condition or '').lower()
            payload = {'same_day': 'same day' in text, 'min_days': None, 'max_days': None}
            match = re.search(r'(\d+)\s*\+\s*days?', text)
            if match:
                payload['min_days'] = int(match.group(1))
        if not payload['same_day'] and payload['min_days'] is None and payload['max_days'] is None:
            raise InvalidRuleError(f"Rule {rule_name!r}: unrecognized booking window {condition!r}", rule=rule_name)
        return payload

    if rule_type == RuleType.DATE_RANGE:
        if isinstance(condition, dict) and ('start' in condition or 'end' in condition):
            try:
                start = date.fromisoformat(str(condition['start']))
                end = date.fromisoformat(str(condition['end']))
            except (KeyError, ValueError):
                raise InvalidRuleError(f"Rule {rule_name!r}: start and end must be ISO dates", rule=rule_name)
            if end < start:
                raise InvalidRuleError(f"Rule {rule_name!r}: end is before start", rule=rule_name)
            return {'start': start.isoformat(), 'end': end.isoformat()}

        months = condition.get('months') if isinstance(condition, dict) else condition
        try:
            if isinstance(months, (list, tuple)):
                parsed = sorted({int(m) for m in months})
                if any(m < 1 or m > 12 for m in parsed):
                    raise ValueError(f"Month out of range in {months!r}")
            else:
                parsed = parse_month_span(months or '')
        except (TypeError, ValueError) as exc:
            raise InvalidRuleError(f"Rule {rule_name!r}: {exc}", rule=rule_name)
        if not parsed:
            raise InvalidRuleError(f"Rule {rule_name!r}: no months given", rule=rule_name)
        return {'months': parsed}

    if isinstance(condition, dict):
        return dict(condition)
    return {'raw': condition}


def parse_pricing_rule(name, rule_type, condition, adjustment, priority=100, active=True):
    """
    Validate one rule row into a PricingRule.

    Raises:
        InvalidRuleError: malformed adjustment, priority or condition
    """
    name = str(name or '').strip()
    if not name:
        raise InvalidRuleError("Pricing rule needs a name")

    percent = parse_adjustment(adjustment)
    try:
        priority = int(priority)
    except (TypeError, ValueError):
        raise InvalidRuleError(f"Rule {name!r}: priority must be a whole number, got {priority!r}", rule=name)

    rule_type = normalize_rule_type(rule_type)
    return PricingRule(
        name=name,
        rule_type=rule_type,
        percent=percent,
        priority=priority,
        active=parse_active(active),
        condition=parse_condition(rule_type, condition, name),
        adjustment=str(adjustment) if isinstance(adjustment, str) else format_adjustment(percent),
    )


def parse_pricing_rules(rows):
    """Parse rule rows (dicts) into PricingRules; the first malformed row raises."""
    return [
        parse_pricing_rule(
            row.get('name'),
            row.get('rule_type'),
            row.get('condition'),
            row.get('adjustment'),
            row.get('priority', 100),
            row.get('active', True),
        )
        for row in rows
    ]


# =============================================================================
# QUOTING
# =============================================================================

def rule_matches(rule, check_in, nights, window):
    """
    True when `rule` applies to a stay starting `check_in` of `nights`
    nights booked `window` days ahead. Unknown rule types never match.
    """
    condition = rule.condition

    if rule.rule_type == RuleType.DAY_OF_WEEK:
        return check_in.weekday() in condition['days']

    if rule.rule_type == RuleType.LENGTH_OF_STAY:
        if nights < condition['min_nights']:
            return False
        max_nights = condition.get('max_nights')
        return max_nights is None or nights <= max_nights

    if rule.rule_type == RuleType.BOOKING_WINDOW:
        if condition.get('same_day'):
            return window == 0
        min_days = condition.get('min_days')
        max_days = condition.get('max_days')
        if min_days is not None and window < min_days:
            return False
        if max_days is not None and window > max_days:
            return False
        return True

    if rule.rule_type == RuleType.DATE_RANGE:
        if 'months' in condition:
            return check_in.month in condition['months']
        return condition['start'] <= check_in.isoformat() <= condition['end']

    return False


class PricingService:
    """
    Applies pricing rules to a guest room base rate.

    Usage:
        service = PricingService(parse_pricing_rules(DEFAULT_PRICING_RULES))
        quote = service.quote(Decimal('75.00'), date(2024, 7, 5), date(2024, 7, 12))
        print(quote.rate, quote.applied)
    """

    def __init__(self, rules=()):
        self.rules = list(rules)

    @classmethod
    def from_rows(cls, rows):
        return cls(parse_pricing_rules(rows))

    def ordered_rules(self, rules=None):
        """Active rules by ascending priority; ties keep their input order."""
        rules = self.rules if rules is None else rules
        return sorted((rule for rule in rules if rule.active), key=lambda rule: rule.priority)

    def quote(self, base_rate, check_in, check_out, rules=None, now=None):
        """
        Price one night of the stay [check_in, check_out).

        Args:
            base_rate: nightly rate before adjustments
            check_in, check_out: stay dates (check_out exclusive)
            rules: PricingRules to apply instead of the service's own
            now: date or datetime the booking is made (defaults to now)

        Returns:
            PriceQuote with the adjusted nightly rate and the names of the
            rules applied, in the order they were applied.

        Raises:
            InvalidRangeError: when the stay has no nights
        """
        from django.utils import timezone

        check_in = as_date(check_in)
        nights = nights_between(check_in, as_date(check_out))
        window = booking_window_days(check_in, now if now is not None else timezone.localtime())

        base_rate = Decimal(str(base_rate))
        rate = base_rate
        applied = []
        adjustments = []

        for rule in self.ordered_rules(rules):
            if not rule_matches(rule, check_in, nights, window):
                continue
            rate = rate * rule.multiplier
            applied.append(rule.name)
            adjustments.append(f"{rule.name}: {format_adjustment(rule.percent)}")

        return PriceQuote(
            base_rate=base_rate,
            rate=rate.quantize(CENTS, rounding=ROUND_HALF_UP),
            nights=nights,
            applied=tuple(applied),
            adjustments=tuple(adjustments),
        )


def describe_condition(rule):
    """Human readable condition for admin lists and reports."""
    condition = rule.condition
    if rule.rule_type == RuleType.DAY_OF_WEEK:
        return ', '.join(DAY_NAMES[d] for d in condition['days'])
    if rule.rule_type == RuleType.LENGTH_OF_STAY:
        if condition.get('max_nights'):
            return f"{condition['min_nights']}-{condition['max_nights']} nights"
        return f"{condition['min_nights']}+ nights"
    if rule.rule_type == RuleType.BOOKING_WINDOW:
        if condition.get('same_day'):
            return 'Same day'
        parts = []
        if condition.get('min_days') is not None:
            parts.append(f"{condition['min_days']}+ days")
        if condition.get('max_days') is not None:
            parts.append(f"up to {condition['max_days']} days")
        return ', '.join(parts)
    if rule.rule_type == RuleType.DATE_RANGE:
        if 'months' in condition:
            return ', '.join(str(m) for m in condition['months'])
        return f"{condition['start']} to {condition['end']}"
    return str(condition.get('raw', condition))

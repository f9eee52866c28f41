"""
Calendar helpers shared by every engine.

Stays are half-open night intervals [check_in, check_out): the check-out day
is never counted as occupied.
"""

import calendar
import math
from datetime import date, datetime, time, timedelta

from dateutil.relativedelta import relativedelta

from parsonage.exceptions import InvalidRangeError

DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']
MONTH_NAMES = list(calendar.month_name)[1:]

SECONDS_PER_DAY = 24 * 60 * 60


def as_date(value):
    """Return the calendar day of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def first_of_month(value):
    return as_date(value).replace(day=1)


def first_of_previous_month(value):
    return first_of_month(value) - relativedelta(months=1)


def last_of_month(value):
    day = as_date(value)
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def nights_between(check_in, check_out):
    """
    Number of nights in [check_in, check_out).

    Partial days round up. Raises InvalidRangeError when check_out is not
    after check_in.
    """
    if check_out <= check_in:
        raise InvalidRangeError(
            f"Check-out {check_out} must be after check-in {check_in}",
            check_in=str(check_in),
            check_out=str(check_out),
        )
    delta = check_out - check_in
    if delta.seconds or delta.microseconds:
        return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
    return delta.days


def intervals_overlap(a_start, a_end, b_start, b_end):
    """True unless one half-open interval ends on or before the other starts."""
    return not (a_end <= b_start or a_start >= b_end)


def is_weekend(value):
    return as_date(value).weekday() >= 5


def day_name(value):
    return DAY_NAMES[as_date(value).weekday()]


def booking_window_days(check_in, now):
    """
    Days between `now` and the start of the check-in day, rounded up.

    A booking made any time on the check-in day itself yields 0.
    """
    if isinstance(now, datetime):
        start = datetime.combine(as_date(check_in), time.min, tzinfo=now.tzinfo)
        return math.ceil((start - now).total_seconds() / SECONDS_PER_DAY)
    return (as_date(check_in) - now).days


def iter_nights(check_in, check_out):
    """Yield each night's date in [check_in, check_out)."""
    current = as_date(check_in)
    end = as_date(check_out)
    while current < end:
        yield current
        current += timedelta(days=1)


def clipped_nights(check_in, check_out, period_start, period_end):
    """
    Nights of [check_in, check_out) that fall inside the inclusive period
    [period_start, period_end].
    """
    start = max(as_date(check_in), period_start)
    end = min(as_date(check_out), period_end + timedelta(days=1))
    if end <= start:
        return 0
    return (end - start).days


def parse_day_names(value):
    """
    Parse "Friday, Saturday" (or a list of names) into weekday numbers.

    Raises ValueError on an unknown day name.
    """
    if isinstance(value, str):
        value = [part for part in value.split(',')]
    days = []
    for raw in value:
        name = str(raw).strip().capitalize()
        if not name:
            continue
        matches = [i for i, day in enumerate(DAY_NAMES) if day.startswith(name)]
        if len(name) < 3 or not matches:
            raise ValueError(f"Unknown day name: {raw!r}")
        days.append(matches[0])
    return sorted(set(days))


def parse_month_span(value):
    """
    Parse "June-August", "November-February" or "July" into month numbers.

    Spans wrap over the year end. Raises ValueError on an unknown month.
    """
    def month_number(name):
        name = name.strip().capitalize()
        for i, month in enumerate(MONTH_NAMES, start=1):
            if len(name) >= 3 and month.startswith(name):
                return i
        raise ValueError(f"Unknown month name: {name!r}")

    parts = [part for part in str(value).split('-') if part.strip()]
    if len(parts) == 1:
        return [month_number(parts[0])]
    if len(parts) != 2:
        raise ValueError(f"Unrecognized month span: {value!r}")

    first, last = month_number(parts[0]), month_number(parts[1])
    months = [first]
    current = first
    while current != last:
        current = current % 12 + 1
        months.append(current)
    return months


def month_key(value):
    return as_date(value).strftime('%Y-%m')


def days_in_period(start, end):
    """Length of the inclusive period [start, end] in days."""
    if end < start:
        raise InvalidRangeError(f"Period end {end} is before start {start}", start=str(start), end=str(end))
    return (end - start).days + 1


def today():
    """Local calendar day for the configured time zone."""
    from django.utils import timezone
    return timezone.localdate()


def month_bounds(year, month):
    start = date(year, month, 1)
    return start, last_of_month(start)

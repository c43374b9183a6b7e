from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from todo_scheduler.domain.dates import as_date, format_date, parse_date
from todo_scheduler.domain.errors import InvalidDate
from todo_scheduler.domain.rules import (
    LAST_DAY,
    SECOND_TO_LAST_DAY,
    EveryNDays,
    MonthlyOn,
    RecurrenceRule,
    WeeklyOn,
    Yearly,
    parse_rule,
)

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)
# Feb 29 with a month filter of February is the sparsest valid rule; around
# century years it recurs only every eight years.
MAX_SCAN_DAYS = 366 * 9


def next_occurrence(now: date | datetime, anchor: date, rule: RecurrenceRule) -> date:
    """Return the earliest date reachable from ``anchor`` under ``rule`` that is strictly after ``now``.

    ``now`` is compared by calendar day only. The anchor itself is returned when
    it already lies after ``now`` and satisfies the rule. Stepping past
    9999-12-31 raises :class:`InvalidDate`.
    """
    today = as_date(now)
    try:
        return _step(today, anchor, rule)
    except (OverflowError, ValueError) as exc:
        # date arithmetic overflows as OverflowError, relativedelta as ValueError
        raise InvalidDate(
            format_date(anchor), f"a date whose next occurrence falls on or before {format_date(date.max)}"
        ) from exc


def _step(today: date, anchor: date, rule: RecurrenceRule) -> date:
    if isinstance(rule, EveryNDays):
        return _next_every_n_days(today, anchor, rule.n)
    if isinstance(rule, Yearly):
        return _next_yearly(today, anchor)
    if isinstance(rule, WeeklyOn):
        return _scan(today, anchor, lambda day: day.isoweekday() in rule.days_of_week)
    if isinstance(rule, MonthlyOn):
        return _scan(today, anchor, lambda day: _matches_monthly(day, rule))
    raise TypeError(f"unsupported recurrence rule: {rule!r}")


def next_date(now: date | datetime, date_text: str, repeat: str) -> str:
    """Text-level wrapper: ``YYYYMMDD`` anchor and raw rule in, ``YYYYMMDD`` out."""
    anchor = parse_date(date_text)
    rule = parse_rule(repeat)
    result = format_date(next_occurrence(now, anchor, rule))
    logger.debug("next date for %s with %r after %s: %s", date_text, repeat, as_date(now), result)
    return result


def add_year(value: date) -> date:
    """Step one calendar year; Feb 29 rolls over to Mar 1 when the target year has no leap day."""
    shifted = value + relativedelta(years=1)
    if shifted.day != value.day:
        shifted += ONE_DAY
    return shifted


def last_day_of_month(value: date) -> int:
    return calendar.monthrange(value.year, value.month)[1]


def _next_every_n_days(today: date, anchor: date, n: int) -> date:
    if anchor > today:
        return anchor
    steps = (today - anchor).days // n + 1
    return anchor + timedelta(days=steps * n)


def _next_yearly(today: date, anchor: date) -> date:
    cursor = anchor
    while cursor <= today:
        cursor = add_year(cursor)
    return cursor


def _scan(today: date, anchor: date, matches) -> date:
    cursor = anchor if anchor > today else today + ONE_DAY
    for _ in range(MAX_SCAN_DAYS):
        if matches(cursor):
            return cursor
        cursor += ONE_DAY
    raise RuntimeError(f"no qualifying day within {MAX_SCAN_DAYS} days of {cursor - MAX_SCAN_DAYS * ONE_DAY}")


def _matches_monthly(day: date, rule: MonthlyOn) -> bool:
    if rule.months is not None and day.month not in rule.months:
        return False
    if day.day in rule.days_of_month:
        return True
    last = last_day_of_month(day)
    if LAST_DAY in rule.days_of_month and day.day == last:
        return True
    return SECOND_TO_LAST_DAY in rule.days_of_month and day.day == last - 1

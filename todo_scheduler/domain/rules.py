"""Recurrence rules: the typed variants and the parser for their text form.

A rule is written as a command letter followed by its arguments::

    y               every year on the anchor's month and day
    d 7             every 7 days (1..400)
    w 1,3,5         on Monday, Wednesday and Friday (Monday=1 .. Sunday=7)
    m 1,15,-1       on the 1st, the 15th and the last day of every month
    m -2 1,7        on the second-to-last day of January and July

Every variant checks its own values when it is constructed, so a rule object
that exists is always valid and the day scans in
:mod:`todo_scheduler.services.recurrence` always terminate.
"""
from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .enums import RuleKind
from .errors import EmptyRule, MalformedRule, OutOfRange, UnknownRuleKind

MAX_DAY_STRIDE = 400
LAST_DAY = -1
SECOND_TO_LAST_DAY = -2

# 2000 is a leap year, so February counts 29 days here
_LONGEST_MONTH = {month: calendar.monthrange(2000, month)[1] for month in range(1, 13)}
_INT_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class EveryNDays:
    n: int

    def __post_init__(self) -> None:
        if not 1 <= self.n <= MAX_DAY_STRIDE:
            raise OutOfRange(str(self.n), f"1..{MAX_DAY_STRIDE}")


@dataclass(frozen=True)
class Yearly:
    pass


@dataclass(frozen=True)
class WeeklyOn:
    days_of_week: frozenset[int]

    def __post_init__(self) -> None:
        if not self.days_of_week:
            raise MalformedRule("", "at least one day of week")
        for day in sorted(self.days_of_week):
            if not 1 <= day <= 7:
                raise OutOfRange(str(day), "1..7")


@dataclass(frozen=True)
class MonthlyOn:
    days_of_month: frozenset[int]
    months: Optional[frozenset[int]] = None

    def __post_init__(self) -> None:
        if not self.days_of_month:
            raise MalformedRule("", "at least one day of month")
        for day in sorted(self.days_of_month):
            if day == 0 or not SECOND_TO_LAST_DAY <= day <= 31:
                raise OutOfRange(str(day), "-2, -1 or 1..31")
        if self.months is None:
            return
        if not self.months:
            raise MalformedRule("", "at least one month")
        for month in sorted(self.months):
            if not 1 <= month <= 12:
                raise OutOfRange(str(month), "1..12")
        if not any(self._can_fall_in(month) for month in self.months):
            raise MalformedRule(
                f"{_join(self.days_of_month)} {_join(self.months)}",
                "days that occur in at least one of the given months",
            )

    def _can_fall_in(self, month: int) -> bool:
        return any(day < 0 or day <= _LONGEST_MONTH[month] for day in self.days_of_month)


RecurrenceRule = Union[EveryNDays, Yearly, WeeklyOn, MonthlyOn]


def parse_rule(text: str) -> RecurrenceRule:
    """Parse a repeat rule, raising a :class:`RuleError` subclass on bad input."""
    tokens = (text or "").split()
    if not tokens:
        raise EmptyRule(text or "")

    command, args = tokens[0], tokens[1:]
    try:
        kind = RuleKind(command)
    except ValueError:
        raise UnknownRuleKind(command) from None

    if kind is RuleKind.YEARLY:
        return _parse_yearly(text, args)
    if kind is RuleKind.DAILY:
        return _parse_daily(text, args)
    if kind is RuleKind.WEEKLY:
        return _parse_weekly(text, args)
    return _parse_monthly(text, args)


def _parse_yearly(text: str, args: list[str]) -> Yearly:
    if args:
        raise MalformedRule(text, "'y' without arguments")
    return Yearly()


def _parse_daily(text: str, args: list[str]) -> EveryNDays:
    if len(args) != 1:
        raise MalformedRule(text, "'d <days>'")
    return EveryNDays(_parse_int(args[0], "an integer number of days"))


def _parse_weekly(text: str, args: list[str]) -> WeeklyOn:
    if len(args) != 1:
        raise MalformedRule(text, "'w <day>[,<day>...]'")
    return WeeklyOn(_parse_int_set(args[0], "comma-separated days of week"))


def _parse_monthly(text: str, args: list[str]) -> MonthlyOn:
    if len(args) not in (1, 2):
        raise MalformedRule(text, "'m <day>[,<day>...] [<month>[,<month>...]]'")
    days = _parse_int_set(args[0], "comma-separated days of month")
    months = _parse_int_set(args[1], "comma-separated months") if len(args) == 2 else None
    return MonthlyOn(days, months)


def _parse_int(token: str, expected: str) -> int:
    if not _INT_RE.fullmatch(token):
        raise MalformedRule(token, expected)
    return int(token)


def _parse_int_set(token: str, expected: str) -> frozenset[int]:
    return frozenset(_parse_int(item, expected) for item in token.split(","))


def _join(values: Iterable[int]) -> str:
    return ",".join(str(value) for value in sorted(values))

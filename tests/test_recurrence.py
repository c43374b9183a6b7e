from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from todo_scheduler.domain.dates import format_date, parse_date, parse_search_date
from todo_scheduler.domain.errors import EmptyRule, InvalidDate, UnknownRuleKind
from todo_scheduler.domain.rules import EveryNDays, MonthlyOn, WeeklyOn, Yearly, parse_rule
from todo_scheduler.services.recurrence import add_year, next_date, next_occurrence


def _next(now: str, anchor: str, repeat: str) -> str:
    return format_date(next_occurrence(parse_date(now), parse_date(anchor), parse_rule(repeat)))


def test_every_n_days_lands_on_first_step_after_now() -> None:
    assert _next("20240310", "20240301", "d 5") == "20240311"


def test_date_equal_to_now_is_never_returned() -> None:
    assert _next("20240310", "20240310", "d 1") == "20240311"
    assert _next("20240311", "20240301", "d 5") == "20240316"


def test_future_anchor_is_kept_when_it_satisfies_the_rule() -> None:
    assert _next("20240310", "20240320", "d 7") == "20240320"
    assert _next("20240310", "20240320", "y") == "20240320"


def test_time_of_day_of_now_is_ignored() -> None:
    late = datetime(2024, 3, 10, 23, 59, tzinfo=timezone.utc)
    early = datetime(2024, 3, 10, 0, 0, tzinfo=timezone.utc)
    anchor = date(2024, 3, 1)
    assert next_occurrence(late, anchor, EveryNDays(5)) == date(2024, 3, 11)
    assert next_occurrence(early, anchor, EveryNDays(5)) == date(2024, 3, 11)


def test_yearly_keeps_month_and_day() -> None:
    assert _next("20240310", "20200515", "y") == "20240515"
    assert _next("20240515", "20200515", "y") == "20250515"


def test_yearly_leap_day_rolls_over_to_march_first() -> None:
    assert add_year(date(2024, 2, 29)) == date(2025, 3, 1)
    assert add_year(date(2025, 3, 1)) == date(2026, 3, 1)
    assert _next("20250301", "20240229", "y") == "20260301"
    assert _next("20240301", "20240229", "y") == "20250301"
    assert _next("20240228", "20240229", "y") == "20240229"


def test_leap_day_anchor_in_a_common_year_is_invalid() -> None:
    with pytest.raises(InvalidDate):
        next_date(date(2025, 3, 1), "20230229", "y")


def test_weekly_skips_now_itself() -> None:
    # 2024-03-04 is a Monday
    assert _next("20240304", "20240304", "w 1,3,5") == "20240306"


def test_weekly_wraps_into_next_week() -> None:
    assert _next("20240308", "20240101", "w 1") == "20240311"
    assert _next("20240309", "20240101", "w 7") == "20240310"


def test_monthly_last_day_uses_real_month_length() -> None:
    assert _next("20240201", "20240101", "m -1") == "20240229"
    assert _next("20230201", "20230101", "m -1") == "20230228"
    assert _next("20240229", "20240101", "m -1") == "20240331"
    assert _next("20240401", "20240101", "m -1") == "20240430"


def test_monthly_second_to_last_day() -> None:
    assert _next("20240201", "20240101", "m -2") == "20240228"
    assert _next("20230201", "20230101", "m -2") == "20230227"
    assert _next("20240201", "20240101", "m -2,-1") == "20240228"


def test_monthly_plain_days() -> None:
    assert _next("20240210", "20240101", "m 1,15") == "20240215"
    assert _next("20240215", "20240101", "m 1,15") == "20240301"


def test_monthly_day_and_month_are_checked_together() -> None:
    assert _next("20240316", "20240101", "m 15 3") == "20250315"
    assert _next("20240201", "20240201", "m 31 1,4") == "20250131"
    assert _next("20240101", "20240101", "m -1 2,6") == "20240229"


def test_leap_day_with_february_filter_waits_for_a_leap_year() -> None:
    assert _next("20250101", "20250101", "m 29 2") == "20280229"
    # 2100 is not a leap year
    assert _next("20960301", "20960301", "m 29 2") == "21040229"


def test_every_n_days_properties() -> None:
    anchor = date(2023, 11, 5)
    for n in (1, 2, 5, 7, 30, 400):
        for offset in range(-10, 900, 37):
            now = anchor + timedelta(days=offset)
            result = next_occurrence(now, anchor, EveryNDays(n))
            assert result > now
            assert (result - anchor).days % n == 0
            assert result == anchor or result - timedelta(days=n) <= now


def test_weekly_result_is_earliest_matching_day() -> None:
    days = frozenset({2, 6})
    anchor = date(2024, 1, 1)
    for offset in range(0, 60):
        now = anchor + timedelta(days=offset)
        result = next_occurrence(now, anchor, WeeklyOn(days))
        assert result > now
        assert result.isoweekday() in days
        cursor = now + timedelta(days=1)
        while cursor < result:
            assert cursor.isoweekday() not in days
            cursor += timedelta(days=1)


def test_monthly_result_is_earliest_matching_day() -> None:
    rule = MonthlyOn(frozenset({10, -1}), frozenset({2, 11}))
    anchor = date(2023, 1, 1)
    for offset in range(0, 800, 11):
        now = anchor + timedelta(days=offset)
        result = next_occurrence(now, anchor, rule)
        assert result > now
        assert result.month in {2, 11}
        next_day = result + timedelta(days=1)
        assert result.day == 10 or next_day.month != result.month
        cursor = now + timedelta(days=1)
        while cursor < result:
            assert not (cursor.month in {2, 11} and (cursor.day == 10 or (cursor + timedelta(days=1)).day == 1))
            cursor += timedelta(days=1)


def test_same_inputs_give_same_result() -> None:
    now = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)
    for rule in (EveryNDays(3), Yearly(), WeeklyOn(frozenset({5})), MonthlyOn(frozenset({-1}))):
        assert next_occurrence(now, date(2024, 1, 31), rule) == next_occurrence(now, date(2024, 1, 31), rule)


def test_unsupported_rule_object_is_a_type_error() -> None:
    with pytest.raises(TypeError):
        next_occurrence(date(2024, 1, 1), date(2024, 1, 1), "d 1")


def test_next_date_works_on_text() -> None:
    assert next_date(date(2024, 3, 10), "20240301", "d 5") == "20240311"
    with pytest.raises(InvalidDate):
        next_date(date(2024, 3, 10), "2024-03-01", "d 5")
    with pytest.raises(EmptyRule):
        next_date(date(2024, 3, 10), "20240301", "")
    with pytest.raises(UnknownRuleKind):
        next_date(date(2024, 3, 10), "20240301", "x 5")


def test_date_codec() -> None:
    assert parse_date("20240229") == date(2024, 2, 29)
    assert format_date(date(987, 1, 2)) == "09870102"
    for bad in ("", "2024031", "202403011", "2024-3-1", "20241301", "abcdefgh"):
        with pytest.raises(InvalidDate):
            parse_date(bad)
    assert parse_search_date("08.03.2024") == date(2024, 3, 8)
    assert parse_search_date("31.02.2024") is None
    assert parse_search_date("groceries") is None


@pytest.mark.parametrize("repeat", ["d 1", "y", "w 1", "m 1", "m -1 12"])
def test_stepping_past_the_last_calendar_day_is_invalid_date(repeat: str) -> None:
    with pytest.raises(InvalidDate) as exc_info:
        next_date(date(9999, 12, 31), "99991231", repeat)
    assert exc_info.value.value == "99991231"
    assert "99991231" in exc_info.value.expected


def test_dates_just_below_the_limit_still_resolve() -> None:
    assert next_date(date(9999, 12, 30), "99991201", "d 1") == "99991231"
    assert next_date(date(9999, 12, 30), "99991201", "m -1") == "99991231"
    assert next_date(date(9998, 12, 31), "99981231", "y") == "99991231"

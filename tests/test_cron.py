"""Tests for cron expression parsing and next-fire computation."""

from datetime import datetime, timezone

import pytest

from src.errors import ScheduleError
from src.jobs.cron import CronSchedule


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_daily_schedule_fires_at_ten_pm():
    """The submission job schedule fires once a day at 22:00:00."""
    cron = CronSchedule("0 0 22 * * *")

    assert cron.next_after(utc(2026, 10, 17, 21, 59, 59)) == utc(2026, 10, 17, 22, 0, 0)
    assert cron.next_after(utc(2026, 10, 17, 22, 0, 0)) == utc(2026, 10, 18, 22, 0, 0)


def test_every_ten_minutes_schedule():
    cron = CronSchedule("0 */10 * * * *")

    assert cron.next_after(utc(2026, 10, 17, 10, 3, 12)) == utc(2026, 10, 17, 10, 10, 0)
    assert cron.next_after(utc(2026, 10, 17, 10, 50, 0)) == utc(2026, 10, 17, 11, 0, 0)
    assert cron.next_after(utc(2026, 12, 31, 23, 55, 0)) == utc(2027, 1, 1, 0, 0, 0)


def test_five_field_expression_fires_at_second_zero():
    # 2026-10-17 is a Saturday; next Monday is the 19th
    cron = CronSchedule("30 6 * * 1")

    assert cron.next_after(utc(2026, 10, 17, 12, 0, 0)) == utc(2026, 10, 19, 6, 30, 0)


def test_seconds_field():
    cron = CronSchedule("*/15 * * * * *")

    assert cron.next_after(utc(2026, 10, 17, 10, 0, 7)) == utc(2026, 10, 17, 10, 0, 15)
    assert cron.next_after(utc(2026, 10, 17, 10, 0, 45, 500)) == utc(2026, 10, 17, 10, 1, 0)


def test_restricted_day_of_month_and_week_match_either():
    # 1st of the month OR Monday: Monday the 19th comes first
    cron = CronSchedule("0 0 1 * 1")

    assert cron.next_after(utc(2026, 10, 17, 0, 0, 0)) == utc(2026, 10, 19, 0, 0, 0)


@pytest.mark.parametrize(
    "expression",
    [
        "not a cron",
        "* * *",
        "0 0 25 * * *",
        "61 * * * * *",
        "abc * * * *",
        "0 0 30 2 *",
    ],
)
def test_invalid_expressions_raise_schedule_error(expression):
    with pytest.raises(ScheduleError) as exc_info:
        CronSchedule(expression)

    assert exc_info.value.expression == expression

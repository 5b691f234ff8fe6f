"""Cron expression parsing and next-fire computation.

Field parsing is delegated to celery beat's ``crontab``; this module adds the
optional leading seconds field and the "when does it fire next" walk the
in-process scheduler needs.
"""

from datetime import date, datetime, time, timedelta, timezone

from celery.schedules import ParseException, crontab, crontab_parser

from src.errors import ScheduleError

# A valid expression fires at least once every four years (Feb 29)
MAX_SEARCH_DAYS = 366 * 4 + 1


class CronSchedule:
    """
    A parsed cron expression.

    Accepts six fields with a leading seconds field
    (``sec min hour dom month dow``) or the classic five fields, in which case
    the job fires at second 0.
    """

    def __init__(self, expression: str):
        self.expression = expression
        fields = expression.split()
        if len(fields) == 6:
            second_field, rest = fields[0], fields[1:]
        elif len(fields) == 5:
            second_field, rest = "0", fields
        else:
            raise ScheduleError(expression, f"expected 5 or 6 fields, got {len(fields)}")

        minute, hour, day_of_month, month_of_year, day_of_week = rest
        try:
            self.seconds = sorted(crontab_parser(60).parse(second_field))
            parsed = crontab(
                minute=minute,
                hour=hour,
                day_of_month=day_of_month,
                month_of_year=month_of_year,
                day_of_week=day_of_week,
            )
        except (ValueError, ParseException) as e:
            raise ScheduleError(expression, str(e)) from e

        self.minutes = sorted(parsed.minute)
        self.hours = sorted(parsed.hour)
        self.days_of_month = parsed.day_of_month
        self.months = parsed.month_of_year
        self.days_of_week = parsed.day_of_week
        # Standard cron: when both day fields are restricted, either may match
        self._dom_restricted = not day_of_month.startswith("*")
        self._dow_restricted = not day_of_week.startswith("*")

        # Reject expressions that can never fire (e.g. February 30th)
        self.next_after(datetime(2000, 1, 1, tzinfo=timezone.utc))

    def _day_matches(self, day: date) -> bool:
        if day.month not in self.months:
            return False
        dom_ok = day.day in self.days_of_month
        dow_ok = (day.weekday() + 1) % 7 in self.days_of_week  # cron: 0 = Sunday
        if self._dom_restricted and self._dow_restricted:
            return dom_ok or dow_ok
        return dom_ok and dow_ok

    def next_after(self, after: datetime) -> datetime:
        """First fire time strictly after ``after`` (same tzinfo, whole seconds)."""
        start = after.replace(microsecond=0) + timedelta(seconds=1)
        day = start.date()
        for _ in range(MAX_SEARCH_DAYS):
            if self._day_matches(day):
                first_day = day == start.date()
                for hour in self.hours:
                    if first_day and hour < start.hour:
                        continue
                    for minute in self.minutes:
                        for second in self.seconds:
                            candidate = datetime.combine(
                                day, time(hour, minute, second), tzinfo=after.tzinfo
                            )
                            if candidate >= start:
                                return candidate
            day += timedelta(days=1)
        raise ScheduleError(self.expression, "never fires")

    def __repr__(self) -> str:
        return f"CronSchedule({self.expression!r})"

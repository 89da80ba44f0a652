"""Cron expressions with a seconds field and an optional year field."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterator, Mapping

__all__ = ["CronError", "CronSchedule", "parse_schedule"]

MIN_YEAR = 1970
MAX_YEAR = 2100

_MONTH_NAMES = {
    name: number
    for number, (short, full) in enumerate(
        zip(calendar.month_abbr[1:], calendar.month_name[1:]), start=1
    )
    for name in (short.lower(), full.lower())
}

# Days of the week run from 1 (Sunday) to 7 (Saturday).
_DAY_NAMES = {
    name: number
    for number, (short, full) in enumerate(
        [
            ("sun", "sunday"),
            ("mon", "monday"),
            ("tue", "tuesday"),
            ("wed", "wednesday"),
            ("thu", "thursday"),
            ("fri", "friday"),
            ("sat", "saturday"),
        ],
        start=1,
    )
    for name in (short, full)
}

_FIELDS: tuple[tuple[str, int, int, Mapping[str, int]], ...] = (
    ("seconds", 0, 59, {}),
    ("minutes", 0, 59, {}),
    ("hours", 0, 23, {}),
    ("days of month", 1, 31, {}),
    ("months", 1, 12, _MONTH_NAMES),
    ("days of week", 1, 7, _DAY_NAMES),
    ("years", MIN_YEAR, MAX_YEAR, {}),
)


class CronError(ValueError):
    """Raised when a cron expression cannot be parsed."""


def _parse_value(token: str, name: str, low: int, high: int, names: Mapping[str, int]) -> int:
    key = token.strip().lower()
    if key in names:
        return names[key]
    try:
        value = int(key)
    except ValueError:
        raise CronError(f"invalid value {token!r} in {name} field") from None
    if not low <= value <= high:
        raise CronError(f"value {value} out of range {low}-{high} in {name} field")
    return value


def _parse_field(text: str, name: str, low: int, high: int, names: Mapping[str, int]) -> frozenset[int]:
    values: set[int] = set()
    for item in text.split(","):
        if not item:
            raise CronError(f"empty item in {name} field")
        base, has_step, step_text = item.partition("/")
        step = 1
        if has_step:
            try:
                step = int(step_text)
            except ValueError:
                raise CronError(f"invalid step {step_text!r} in {name} field") from None
            if step < 1:
                raise CronError(f"step must be positive in {name} field")
        if base in ("*", "?"):
            start, end = low, high
        elif "-" in base:
            first, _, last = base.partition("-")
            start = _parse_value(first, name, low, high, names)
            end = _parse_value(last, name, low, high, names)
            if start > end:
                raise CronError(f"range {base!r} is reversed in {name} field")
        else:
            start = _parse_value(base, name, low, high, names)
            end = high if has_step else start
        values.update(range(start, end + 1, step))
    return frozenset(values)


def _cron_weekday(day: datetime) -> int:
    return (day.weekday() + 1) % 7 + 1


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True)
class CronSchedule:
    """A parsed cron schedule; times are evaluated in UTC."""

    seconds: frozenset[int]
    minutes: frozenset[int]
    hours: frozenset[int]
    days_of_month: frozenset[int]
    months: frozenset[int]
    days_of_week: frozenset[int]
    years: frozenset[int]
    expression: str = field(default="", compare=False)

    def _spec(self) -> tuple[frozenset[int], ...]:
        return (
            self.seconds,
            self.minutes,
            self.hours,
            self.days_of_month,
            self.months,
            self.days_of_week,
            self.years,
        )

    def same_spec(self, other: CronSchedule) -> bool:
        """Whether both schedules fire at exactly the same times."""
        return self._spec() == other._spec()

    def includes(self, moment: datetime) -> bool:
        """Whether the given moment (to the second) is a scheduled time."""
        moment = _as_utc(moment)
        return (
            moment.second in self.seconds
            and moment.minute in self.minutes
            and moment.hour in self.hours
            and moment.day in self.days_of_month
            and moment.month in self.months
            and _cron_weekday(moment) in self.days_of_week
            and moment.year in self.years
        )

    def after(self, start: datetime) -> Iterator[datetime]:
        """Yield the scheduled times strictly after ``start``, in order."""
        begin = _as_utc(start).replace(microsecond=0) + timedelta(seconds=1)
        seconds = sorted(self.seconds)
        minutes = sorted(self.minutes)
        hours = sorted(self.hours)
        for year in sorted(y for y in self.years if y >= begin.year):
            at_year = year == begin.year
            for month in sorted(self.months):
                if at_year and month < begin.month:
                    continue
                at_month = at_year and month == begin.month
                for day in range(1, calendar.monthrange(year, month)[1] + 1):
                    if at_month and day < begin.day:
                        continue
                    if day not in self.days_of_month:
                        continue
                    if _cron_weekday(datetime(year, month, day)) not in self.days_of_week:
                        continue
                    at_day = at_month and day == begin.day
                    for hour in hours:
                        if at_day and hour < begin.hour:
                            continue
                        at_hour = at_day and hour == begin.hour
                        for minute in minutes:
                            if at_hour and minute < begin.minute:
                                continue
                            at_minute = at_hour and minute == begin.minute
                            for second in seconds:
                                if at_minute and second < begin.second:
                                    continue
                                yield datetime(
                                    year, month, day, hour, minute, second, tzinfo=timezone.utc
                                )


def parse_schedule(expression: str) -> CronSchedule:
    """Parse a six- or seven-field cron expression (seconds first, year last)."""
    parts = expression.split()
    if len(parts) == 6:
        parts.append("*")
    if len(parts) != 7:
        raise CronError(f"expected 6 or 7 fields, found {len(parts)} in {expression!r}")
    sets = [
        _parse_field(text, name, low, high, names)
        for text, (name, low, high, names) in zip(parts, _FIELDS)
    ]
    return CronSchedule(*sets, expression=expression)
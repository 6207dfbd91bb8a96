"""Five-field cron expressions: minute, hour, day of month, month, day of week."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

_MONTH_NAMES = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}
_WEEKDAY_NAMES = {
    name: number
    for number, name in enumerate(("sun", "mon", "tue", "wed", "thu", "fri", "sat"))
}

_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

_SEARCH_YEARS = 5


class CronError(ValueError):
    """Raised for an expression that cannot be parsed or never fires."""


def _value(text: str, names: dict[str, int], expression: str) -> int:
    lowered = text.lower()
    if lowered in names:
        return names[lowered]
    if not text.isascii() or not text.isdigit():
        raise CronError(f"failed to parse int from {text}: {expression}")
    return int(text)


def _parse_field(
    text: str, low: int, high: int, names: dict[str, int], expression: str
) -> tuple[frozenset[int], bool]:
    values: set[int] = set()
    star = False
    for part in text.split(","):
        if not part:
            raise CronError(f"empty list item: {expression}")
        range_text, has_step, step_text = part.partition("/")
        step = 1
        if has_step:
            step = _value(step_text, {}, expression)
            if step <= 0:
                raise CronError(f"step of range should be a positive number: {part}")
        if range_text in ("*", "?"):
            start, end = low, high
            star = star or not has_step
        else:
            first, has_end, last = range_text.partition("-")
            start = _value(first, names, expression)
            if has_end:
                end = _value(last, names, expression)
            else:
                end = high if has_step else start
        if start < low:
            raise CronError(f"beginning of range ({start}) below minimum ({low}): {part}")
        if end > high:
            raise CronError(f"end of range ({end}) above maximum ({high}): {part}")
        if start > end:
            raise CronError(f"beginning of range ({start}) beyond end of range ({end}): {part}")
        values.update(range(start, end + 1, step))
    return frozenset(values), star


def _weekday(moment: datetime) -> int:
    return (moment.weekday() + 1) % 7


@dataclass(frozen=True)
class CronSchedule:
    """The set of minutes at which a cron expression fires."""

    minutes: frozenset[int]
    hours: frozenset[int]
    days: frozenset[int]
    months: frozenset[int]
    weekdays: frozenset[int]
    day_star: bool = False
    weekday_star: bool = False

    @classmethod
    def parse(cls, expression: str) -> "CronSchedule":
        """Parse a standard cron expression or one of the @ descriptors."""
        text = expression.strip()
        if text.startswith("@"):
            if text not in _DESCRIPTORS:
                raise CronError(f"unrecognized descriptor: {expression}")
            text = _DESCRIPTORS[text]
        fields = text.split()
        if len(fields) != 5:
            raise CronError(f"expected exactly 5 fields, found {len(fields)}: {expression}")
        minutes, _ = _parse_field(fields[0], 0, 59, {}, expression)
        hours, _ = _parse_field(fields[1], 0, 23, {}, expression)
        days, day_star = _parse_field(fields[2], 1, 31, {}, expression)
        months, _ = _parse_field(fields[3], 1, 12, _MONTH_NAMES, expression)
        weekdays, weekday_star = _parse_field(fields[4], 0, 6, _WEEKDAY_NAMES, expression)
        return cls(minutes, hours, days, months, weekdays, day_star, weekday_star)

    def _day_matches(self, moment: datetime) -> bool:
        day_ok = moment.day in self.days
        weekday_ok = _weekday(moment) in self.weekdays
        if self.day_star or self.weekday_star:
            return day_ok and weekday_ok
        return day_ok or weekday_ok

    def matches(self, moment: datetime) -> bool:
        """Whether the schedule fires during the minute of ``moment``."""
        return (
            moment.minute in self.minutes
            and moment.hour in self.hours
            and moment.month in self.months
            and self._day_matches(moment)
        )

    def next_after(self, moment: datetime) -> datetime:
        """The first whole minute strictly after ``moment`` at which the schedule fires."""
        current = moment.replace(second=0, microsecond=0) + timedelta(minutes=1)
        last_year = current.year + _SEARCH_YEARS
        while current.year <= last_year:
            if current.month not in self.months:
                if current.month == 12:
                    current = current.replace(year=current.year + 1, month=1, day=1, hour=0, minute=0)
                else:
                    current = current.replace(month=current.month + 1, day=1, hour=0, minute=0)
                continue
            if not self._day_matches(current):
                current = current.replace(hour=0, minute=0) + timedelta(days=1)
                continue
            if current.hour not in self.hours:
                current = current.replace(minute=0) + timedelta(hours=1)
                continue
            if current.minute not in self.minutes:
                current += timedelta(minutes=1)
                continue
            return current
        raise CronError("schedule never fires")
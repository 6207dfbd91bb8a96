"""Computing when a date-based timer should next wake, and whether it fires."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from groupbot.timerspec import Timer

log = logging.getLogger(__name__)


def _weekday(moment: datetime) -> int:
    """Weekday with Sunday as 0."""
    return (moment.weekday() + 1) % 7


def _normalized(year, month, day, hour, minute, second, microsecond, tzinfo) -> datetime:
    """Build a datetime, letting out-of-range months and days roll over."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    base = datetime(year, month, 1, tzinfo=tzinfo)
    return base + timedelta(
        days=day - 1, hours=hour, minutes=minute, seconds=second, microseconds=microsecond
    )


def _add_date(moment: datetime, years: int = 0, months: int = 0, days: int = 0) -> datetime:
    return _normalized(
        moment.year + years,
        moment.month + months,
        moment.day + days,
        moment.hour,
        moment.minute,
        moment.second,
        moment.microsecond,
        moment.tzinfo,
    )


def first_weekday(date: datetime, weekday: int) -> datetime:
    """The first day of ``date``'s month falling on ``weekday`` (Sunday is 0)."""
    day = _add_date(date, days=1 - date.day)
    while _weekday(day) != weekday:
        day = _add_date(day, days=1)
    return day


def next_wake_time(timer: Timer, now: datetime) -> datetime:
    """When to wake next to check ``timer``; always later than ``now``."""
    month, day, hour, minute, week = (
        timer.month(),
        timer.day(),
        timer.hour(),
        timer.minute(),
        timer.week(),
    )

    unit = timedelta(0)
    if minute >= 0:
        if hour < 0:
            unit = timedelta(hours=1)
        elif day < 0 or week < 0:
            unit = timedelta(days=1)
        elif day == 0 and week >= 0:
            delta = timedelta(days=week - _weekday(now))
            if delta < timedelta(0):
                delta = timedelta(days=7)
            unit += delta
        # a fixed month with a fixed day adds no offset
    else:
        unit = timedelta(minutes=1)
    log.debug("[timer] unit: %s", unit)

    stable = 0
    if minute < 0:
        minute = now.minute
    if hour < 0:
        hour = now.hour
    else:
        stable |= 0x8
    if day < 0:
        day = now.day
    elif day > 0:
        stable |= 0x4
    else:
        day = now.day
        if week >= 0:
            stable |= 0x2
    if month < 0:
        month = now.month
    else:
        stable |= 0x1

    if stable == 0b0101:
        if timer.day() != now.day or timer.month() != now.month:
            hour = 0
    elif stable == 0b1001:
        if timer.month() != now.month:
            day = 0
    elif stable == 0b0001:
        if timer.month() != now.month:
            day = 0
            hour = 0
    log.debug("[timer] stable: %d m: %d d: %d h: %d mn: %d w: %d",
              stable, month, day, hour, minute, week)

    date = _normalized(now.year, month, day, hour, minute, now.second, now.microsecond, now.tzinfo)
    if unit > timedelta(0):
        date += unit

    if date <= now:
        if timer.month() < 0:
            if timer.day() > 0 or (timer.day() == 0 and timer.week() >= 0):
                date = _add_date(date, months=1)
            elif timer.day() < 0 or timer.week() < 0:
                if timer.hour() > 0:
                    date = _add_date(date, days=1)
                elif timer.minute() > 0:
                    date += timedelta(hours=1)
        else:
            date = _add_date(date, years=1)

    if stable & 0x8 and date.hour != hour:
        if not stable & 0x4:
            date = _add_date(date, days=1) - timedelta(hours=1)
        elif not stable & 0x2:
            date = _add_date(date, days=7) - timedelta(hours=1)
        else:
            date = _add_date(date, years=1) - timedelta(hours=1)

    if stable & 0x4 and date.day != day:
        date = _add_date(date, years=1, days=-1)

    if stable & 0x2 and _weekday(date) != week:
        date = first_weekday(_add_date(date, years=1), week)

    if date <= now:
        date = now + timedelta(minutes=1)
    log.debug("[timer] wake at: %s", date)
    return date


def should_fire(timer: Timer, now: datetime) -> bool:
    """Whether an enabled ``timer`` is due at ``now``."""
    if not timer.enabled():
        return False
    if timer.month() >= 0 and timer.month() != now.month:
        return False
    if timer.day() < 0 or timer.day() == now.day:
        pass
    elif timer.day() == 0:
        if timer.week() >= 0 and timer.week() != _weekday(now):
            return False
    else:
        return False
    hour_ok = timer.hour() < 0 or timer.hour() == now.hour
    minute_ok = timer.minute() < 0 or timer.minute() == now.minute
    return hour_ok and minute_ok
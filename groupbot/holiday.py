"""Countdowns to public holidays and the daily "slacker" reminder text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

HOLIDAY_NAMES = ("元旦", "春节", "清明节", "劳动节", "端午节", "中秋节", "国庆节")
"""Holidays listed in the daily message, in order."""

INTRO = (
    "上午好，摸鱼人！\n工作再累，一定不要忘记摸鱼哦！有事没事起身去茶水间，去厕所，"
    "去廊道走走别老在工位上坐着，钱是老板的,但命是自己的。\n"
)
CLOSING = "上班是帮老板赚钱，摸鱼是赚老板的钱！最后，祝愿天下所有摸鱼人，都能愉快的渡过每一天…"

_RECORD = re.compile(r"\s*(-?\d+)_(-?\d+)_(-?\d+)_(-?\d+)\s*")


@dataclass
class Holiday:
    """A holiday starting at ``date`` and lasting ``duration``."""

    name: str
    date: datetime
    duration: timedelta

    def describe(self, now: datetime | None = None) -> str:
        """How far away the holiday is, whether it is on, or that it is over."""
        current = datetime.now() if now is None else now
        remaining = self.date - current
        if remaining >= timedelta(0):
            days = remaining.total_seconds() / 3600 / 24.0
            return f"距离{self.name}还有: {days:.2f}天！"
        if remaining + self.duration >= timedelta(0):
            return f"好好享受 {self.name} 假期吧!"
        return f"今年 {self.name} 假期已过"

    def __str__(self) -> str:
        return self.describe()


def format_holiday(dur: int, year: int, month: int, day: int) -> str:
    """Stored form of a holiday: days, year, month and day joined by underscores."""
    return f"{dur}_{year}_{month}_{day}"


def parse_holiday(name: str, value: str) -> Holiday:
    """Read a holiday from its stored form; raises ValueError when malformed."""
    match = _RECORD.fullmatch(value)
    if match is None:
        raise ValueError(f"malformed holiday record: {value!r}")
    dur, year, month, day = (int(part) for part in match.groups())
    return Holiday(name, datetime(year, month, day), timedelta(days=dur))


def _weekday(moment: datetime) -> int:
    """Weekday with Sunday as 0."""
    return (moment.weekday() + 1) % 7


def weekend_text(now: datetime | None = None) -> str:
    """Days left until the weekend, or a greeting if it already is one."""
    current = datetime.now() if now is None else now
    weekday = _weekday(current)
    if weekday in (0, 6):
        return "好好享受周末吧！"
    return f"距离周末还有:{5 - weekday}天！"


def moyu_message(holidays: Iterable[Holiday], now: datetime | None = None) -> str:
    """The daily reminder: date, greeting, weekend countdown and holiday countdowns."""
    current = datetime.now() if now is None else now
    lines = "".join("\n" + holiday.describe(current) for holiday in holidays)
    return current.strftime("%Y-%m-%d") + INTRO + weekend_text(current) + lines + "\n" + CLOSING
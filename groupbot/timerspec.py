"""Timer specifications for group reminders and parsing of Chinese date phrases."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)

_EN_MASK = 0x800000
_MONTH_MASK, _MONTH_SHIFT = 0x780000, 19
_DAY_MASK, _DAY_SHIFT = 0x07C000, 14
_WEEK_MASK, _WEEK_SHIFT = 0x003800, 11
_HOUR_MASK, _HOUR_SHIFT = 0x0007C0, 6
_MINUTE_MASK, _MINUTE_SHIFT = 0x00003F, 0
_ALL_BITS = 0xFFFFFF

_DIGITS = "零一二三四五六七八九十"
_EVERY = "每"


@dataclass
class Timer:
    """A reminder; the schedule is packed into one integer as stored in the database.

    A field value of -1 means "every".
    """

    id: int = 0
    packed: int = 0
    self_id: int = 0
    group_id: int = 0
    alert: str = ""
    cron: str = ""
    url: str = ""

    def _field(self, mask: int, shift: int) -> int:
        value = (self.packed & mask) >> shift
        return -1 if value == mask >> shift else value

    def _set_field(self, value: int, mask: int, shift: int) -> None:
        self.packed = ((value << shift) & mask) | (self.packed & (_ALL_BITS ^ mask))

    def enabled(self) -> bool:
        return self.packed & _EN_MASK != 0

    def month(self) -> int:
        return self._field(_MONTH_MASK, _MONTH_SHIFT)

    def day(self) -> int:
        return self._field(_DAY_MASK, _DAY_SHIFT)

    def week(self) -> int:
        """Weekday with Sunday as 0."""
        return self._field(_WEEK_MASK, _WEEK_SHIFT)

    def hour(self) -> int:
        return self._field(_HOUR_MASK, _HOUR_SHIFT)

    def minute(self) -> int:
        return self._field(_MINUTE_MASK, _MINUTE_SHIFT)

    def _set_enabled(self, enabled: bool) -> None:
        if enabled:
            self.packed |= _EN_MASK
        else:
            self.packed &= _ALL_BITS ^ _EN_MASK

    def _set_month(self, month: int) -> None:
        self._set_field(month, _MONTH_MASK, _MONTH_SHIFT)

    def _set_day(self, day: int) -> None:
        self._set_field(day, _DAY_MASK, _DAY_SHIFT)

    def _set_week(self, week: int) -> None:
        self._set_field(week, _WEEK_MASK, _WEEK_SHIFT)

    def _set_hour(self, hour: int) -> None:
        self._set_field(hour, _HOUR_MASK, _HOUR_SHIFT)

    def _set_minute(self, minute: int) -> None:
        self._set_field(minute, _MINUTE_MASK, _MINUTE_SHIFT)

    def info(self) -> str:
        """Normalised description of the schedule, prefixed by the group."""
        if self.cron:
            return f"[{self.group_id}]{self.cron}"
        return (
            f"[{self.group_id}]{self.month()}月{self.day()}日{self.week()}周"
            f"{self.hour()}:{self.minute()}"
        )

    def timer_id(self) -> int:
        """Stable identifier derived from :meth:`info`."""
        digest = hashlib.md5(self.info().encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "little")


def get_filled_cron_timer(cron: str, alert: str, url: str, bot_id: int, group_id: int) -> Timer:
    """Build a timer driven by a cron expression."""
    return Timer(self_id=bot_id, group_id=group_id, alert=alert, cron=cron, url=url)


def _drop_middle_ten(text: str) -> str:
    # "二十三" -> "二三"
    return text[0] + text[2] if len(text) == 3 else text


def get_filled_timer(date_strs, bot_id: int, group_id: int, match_date_only: bool) -> Timer:
    """Build a timer from the regex groups of a reminder command.

    ``date_strs`` holds the whole match followed by month, day-or-week, hour,
    minute and, unless ``match_date_only``, the optional ``用<url>`` part and
    the alert text. An invalid value leaves the timer disabled with the reason
    in ``alert``.
    """
    month_str, day_week, hour_str, minute_str = date_strs[1:5]
    timer = Timer()

    month = chinese_num_to_int(month_str)
    if (month != -1 and month <= 0) or month > 12:
        timer.alert = "月份非法！"
        return timer
    timer._set_month(month)

    if len(day_week) == 4:
        day = chinese_num_to_int(day_week[0] + day_week[2])
        if (day != -1 and day <= 0) or day > 31:
            timer.alert = "日期非法1！"
            return timer
        timer._set_day(day)
    elif day_week[-1] == "日":
        day = chinese_num_to_int(day_week[:-1])
        if (day != -1 and day <= 0) or day > 31:
            timer.alert = "日期非法2！"
            return timer
        timer._set_day(day)
    elif day_week[0] == _EVERY:
        timer._set_week(-1)
    else:
        week = chinese_num_to_int(day_week[1:])
        if week == 7:
            week = 0
        if week < 0 or week > 6:
            timer.alert = "星期非法！"
            return timer
        timer._set_week(week)

    hour = chinese_num_to_int(_drop_middle_ten(hour_str))
    if hour < -1 or hour > 23:
        timer.alert = "小时非法！"
        return timer
    timer._set_hour(hour)

    minute = chinese_num_to_int(_drop_middle_ten(minute_str))
    if minute < -1 or minute > 59:
        timer.alert = "分钟非法！"
        return timer
    timer._set_minute(minute)

    if not match_date_only:
        url_str = date_strs[5]
        if url_str:
            # drop the leading "用", three bytes in UTF-8
            timer.url = url_str.encode("utf-8")[3:].decode("utf-8", errors="replace")
            log.debug("[群管]%s", timer.url)
            if not timer.url.startswith("http"):
                timer.url = "illegal"
                log.debug("[群管]url非法！")
                return timer
        timer.alert = date_strs[6]
        timer._set_enabled(True)

    timer.self_id = bot_id
    timer.group_id = group_id
    return timer


def chinese_num_to_int(text: str) -> int:
    """Convert a one- or two-digit Chinese or Arabic number.

    "每" alone means -1, "每二" means -2 and so on.
    """
    if not text:
        raise ValueError("empty number")
    first = text[0]
    if first.isdecimal():
        return int(text) if text.isascii() and text.isdigit() else 0
    if first == _EVERY:
        return -chinese_char_to_int(text[1]) if len(text) == 2 else -1
    if len(text) == 1:
        return chinese_char_to_int(first)
    ten = chinese_char_to_int(first)
    if ten != 10:
        ten *= 10
    unit = chinese_char_to_int(text[1])
    if unit == 10:
        unit = 0
    return ten + unit


def chinese_char_to_int(char: str) -> int:
    """Map one Chinese numeral to 0..10; "日" and "天" (Sunday) give 7."""
    if char in ("日", "天"):
        return 7
    index = _DIGITS.find(char)
    return index if index >= 0 and len(char) == 1 else 0
from datetime import datetime, timedelta

import pytest

from groupbot.holiday import (
    CLOSING,
    HOLIDAY_NAMES,
    INTRO,
    Holiday,
    format_holiday,
    moyu_message,
    parse_holiday,
    weekend_text,
)

HOLIDAYS = [
    ("元旦", 1, 2023, 1, 1),
    ("春节", 7, 2023, 1, 21),
    ("清明节", 1, 2023, 4, 5),
    ("劳动节", 1, 2023, 5, 1),
    ("端午节", 1, 2023, 6, 22),
    ("中秋节", 1, 2022, 9, 10),
    ("国庆节", 7, 2022, 10, 1),
]


@pytest.mark.parametrize("name,dur,year,month,day", HOLIDAYS)
def test_format_and_parse_round_trip(name, dur, year, month, day):
    text = format_holiday(dur, year, month, day)
    assert text == f"{dur}_{year}_{month}_{day}"
    holiday = parse_holiday(name, text)
    assert holiday.name == name
    assert holiday.date == datetime(year, month, day)
    assert holiday.duration == timedelta(days=dur)


def test_format_new_year():
    assert format_holiday(1, 2023, 1, 1) == "1_2023_1_1"


def test_parse_rejects_garbage():
    with pytest.raises(ValueError):
        parse_holiday("元旦", "connection refused")


def test_parse_rejects_invalid_date():
    with pytest.raises(ValueError):
        parse_holiday("元旦", "1_2023_13_1")


def test_countdown():
    holiday = parse_holiday("元旦", format_holiday(1, 2023, 1, 1))
    assert holiday.describe(datetime(2022, 12, 31)) == "距离元旦还有: 1.00天！"


def test_during_holiday():
    holiday = parse_holiday("春节", format_holiday(7, 2023, 1, 21))
    assert holiday.describe(datetime(2023, 1, 22, 12)) == "好好享受 春节 假期吧!"


def test_after_holiday():
    holiday = parse_holiday("春节", format_holiday(7, 2023, 1, 21))
    assert holiday.describe(datetime(2023, 2, 1)) == "今年 春节 假期已过"


def test_weekend_text_on_saturday_and_sunday():
    assert weekend_text(datetime(2022, 9, 10)) == "好好享受周末吧！"
    assert weekend_text(datetime(2022, 9, 11)) == "好好享受周末吧！"


def test_weekend_text_on_monday():
    assert weekend_text(datetime(2022, 9, 12)) == "距离周末还有:4天！"


def test_moyu_message_layout():
    now = datetime(2022, 9, 12, 10)
    holidays = [parse_holiday(*h[:1], format_holiday(*h[1:])) for h in HOLIDAYS]
    text = moyu_message(holidays, now)
    assert text.startswith("2022-09-12" + INTRO + weekend_text(now))
    assert text.endswith("\n" + CLOSING)
    for holiday in holidays:
        assert "\n" + holiday.describe(now) + "\n" in text
    assert [h[0] for h in HOLIDAYS] == list(HOLIDAY_NAMES)


def test_holiday_dataclass_fields():
    holiday = Holiday("国庆节", datetime(2022, 10, 1), timedelta(days=7))
    assert holiday.describe(datetime(2022, 10, 3)) == "好好享受 国庆节 假期吧!"
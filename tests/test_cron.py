from datetime import datetime, timedelta

import pytest

from groupbot.cron import CronError, CronSchedule


def test_step_over_star():
    schedule = CronSchedule.parse("*/15 * * * *")
    assert schedule.minutes == frozenset({0, 15, 30, 45})
    assert schedule.hours == frozenset(range(24))


def test_names_equal_numbers():
    assert CronSchedule.parse("0 0 * jan mon") == CronSchedule.parse("0 0 * 1 1")


def test_descriptor_equals_expansion():
    assert CronSchedule.parse("@daily") == CronSchedule.parse("0 0 * * *")
    assert CronSchedule.parse("@hourly") == CronSchedule.parse("0 * * * *")


def test_list_and_range():
    schedule = CronSchedule.parse("1,5-7 * * * *")
    assert schedule.minutes == frozenset({1, 5, 6, 7})


@pytest.mark.parametrize(
    "expression",
    ["", "* * * *", "* * * * * *", "60 * * * *", "* 24 * * *", "* * 0 * *",
     "* * * 13 *", "* * * * 7", "5-1 * * * *", "*/0 * * * *", "x * * * *", "@never",
     "1,,2 * * * *"],
)
def test_invalid_expressions(expression):
    with pytest.raises(CronError):
        CronSchedule.parse(expression)


def test_error_is_value_error():
    with pytest.raises(ValueError):
        CronSchedule.parse("a b c")


def test_matches_fixed_time():
    schedule = CronSchedule.parse("0 12 * * *")
    assert schedule.matches(datetime(2022, 8, 16, 12, 0, 30))
    assert not schedule.matches(datetime(2022, 8, 16, 12, 1))


def test_day_or_weekday_when_both_restricted():
    schedule = CronSchedule.parse("0 0 13 * 5")
    assert schedule.matches(datetime(2022, 8, 13, 0, 0))  # the 13th, a Saturday
    assert schedule.matches(datetime(2022, 8, 19, 0, 0))  # a Friday
    assert not schedule.matches(datetime(2022, 8, 16, 0, 0))


def test_day_and_weekday_when_one_is_star():
    schedule = CronSchedule.parse("0 0 * * 5")
    assert schedule.matches(datetime(2022, 8, 19, 0, 0))
    assert not schedule.matches(datetime(2022, 8, 13, 0, 0))


def test_next_after_same_day():
    schedule = CronSchedule.parse("0 12 * * *")
    assert schedule.next_after(datetime(2022, 8, 16, 10, 30)) == datetime(2022, 8, 16, 12, 0)


@pytest.mark.parametrize(
    "expression", ["*/7 * * * *", "30 4 * * *", "0 0 29 2 *", "15 9 * * 1-5", "@monthly"]
)
def test_next_after_invariants(expression):
    schedule = CronSchedule.parse(expression)
    start = datetime(2022, 8, 16, 10, 30, 45)
    found = schedule.next_after(start)
    assert found > start
    assert found.second == 0 and found.microsecond == 0
    assert schedule.matches(found)
    probe = start.replace(second=0, microsecond=0) + timedelta(minutes=1)
    while probe < found and probe - start < timedelta(days=2):
        assert not schedule.matches(probe)
        probe += timedelta(minutes=1)


def test_next_after_is_strict():
    schedule = CronSchedule.parse("* * * * *")
    moment = datetime(2022, 8, 16, 10, 30)
    assert schedule.next_after(moment) == moment + timedelta(minutes=1)


def test_never_firing_schedule():
    schedule = CronSchedule.parse("0 0 31 2 *")
    with pytest.raises(CronError):
        schedule.next_after(datetime(2022, 1, 1))
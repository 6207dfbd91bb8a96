import json
import random

import pytest

from groupbot.reborn import GENDER, WeightedChooser, load_areas, reborn


class _FixedRng:
    """Always draws the same position, clamped to the range asked for."""

    def __init__(self, value):
        self.value = value

    def randrange(self, stop):
        return min(self.value, stop - 1)


def test_single_choice_always_picked():
    chooser = WeightedChooser([("only", 5)])
    rng = random.Random(1)
    assert {chooser.pick(rng) for _ in range(50)} == {"only"}


def test_zero_weight_never_picked():
    chooser = WeightedChooser([("never", 0), ("a", 1), ("b", 2)])
    rng = random.Random(7)
    picks = {chooser.pick(rng) for _ in range(500)}
    assert picks == {"a", "b"}


def test_extremes_of_range():
    chooser = WeightedChooser([("heavy", 10), ("light", 1)])
    assert chooser.pick(_FixedRng(0)) == "light"
    assert chooser.pick(_FixedRng(10**9)) == "heavy"


@pytest.mark.parametrize("choices", [[], [("a", 0)], [("a", -1), ("b", 3)]])
def test_invalid_choices(choices):
    with pytest.raises(ValueError):
        WeightedChooser(choices)


def test_gender_choices():
    rng = random.Random(3)
    picks = {GENDER.pick(rng) for _ in range(2000)}
    assert picks <= {"男孩子", "女孩子", "雌雄同体"}
    assert GENDER.pick(_FixedRng(10**9)) == "男孩子"


def test_load_areas(tmp_path):
    path = tmp_path / "rate.json"
    path.write_text(json.dumps([{"name": "甲", "weight": 0.7}, {"name": "乙", "weight": 0.3}]), encoding="utf-8")
    areas = load_areas(path)
    assert areas.pick(_FixedRng(10**12)) == "甲"
    assert areas.pick(_FixedRng(0)) == "乙"


def test_reborn_success():
    areas = WeightedChooser([("甲", 1)])
    text = reborn(areas, _FixedRng(10**12))
    assert text.startswith("投胎成功！\n您出生在 甲, 是 男孩子")


def test_reborn_failure():
    areas = WeightedChooser([("甲", 1)])
    assert reborn(areas, _FixedRng(0)) == "投胎失败！\n您没能活到出生，祝您下次好运！"
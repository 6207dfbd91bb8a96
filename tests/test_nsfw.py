import pytest

from groupbot.nsfw import Picture, auto_judge, judge


def test_neutral_is_ordinary():
    assert judge(Picture(neutral=0.9, porn=0.9)) == "普通哦"


def test_judge_drawn_hentai():
    assert judge(Picture(neutral=0.1, hentai=0.8)) == "二次元 hentai"


def test_judge_flags_in_order():
    text = judge(Picture(neutral=0.0, hentai=0.5, porn=0.5, sexy=0.5))
    assert text.endswith(" hentai porn hso")


def test_judge_real_photo_when_neutral_on_threshold():
    assert judge(Picture(neutral=0.3, drawings=0.1, sexy=0.6)) == "三次元 hso"


def test_auto_judge_ignores_neutral():
    assert auto_judge(Picture(neutral=0.5, porn=0.9)) is None


def test_auto_judge_silent_without_flags():
    assert auto_judge(Picture(neutral=0.1, drawings=0.9)) is None


@pytest.mark.parametrize("drawings,prefix", [(0.9, "二次元"), (0.1, "三次元")])
def test_auto_judge_kind(drawings, prefix):
    text = auto_judge(Picture(neutral=0.0, drawings=drawings, porn=0.7))
    assert text == prefix + " porn"
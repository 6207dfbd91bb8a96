"""Speech synthesis requests for Japanese, Korean and Chinese voice models."""

from __future__ import annotations

import re
import unicodedata
from typing import Callable
from urllib.parse import quote_plus

JP_API = "https://moegoe.azurewebsites.net/api/speak?text={text}&id={id}"
KR_API = "https://moegoe.azurewebsites.net/api/speakkr?text={text}&id={id}"
CN_API = "http://233366.proxy.nscc-gz.cn:8888?speaker={speaker}&text={text}"

JP_SPEAKERS = {"宁宁": 0, "爱瑠": 1, "芳乃": 2, "茉子": 3, "丛雨": 4, "小春": 5, "七海": 6}
KR_SPEAKERS = {"Sua": 0, "Mimiru": 1, "Arin": 2, "Yeonhwa": 3, "Yuhwa": 4, "Seonbae": 5}
CN_SPEAKERS = (
    "派蒙", "凯亚", "安柏", "丽莎", "琴", "香菱", "枫原万叶", "迪卢克", "温迪", "可莉",
    "早柚", "托马", "芭芭拉", "优菈", "云堇", "钟离", "魈", "凝光", "雷电将军", "北斗",
    "甘雨", "七七", "刻晴", "神里绫华", "雷泽", "神里绫人", "罗莎莉亚", "阿贝多", "八重神子",
    "宵宫", "荒泷一斗", "九条裟罗", "夜兰", "珊瑚宫心海", "五郎", "达达利亚", "莫娜", "班尼特",
    "申鹤", "行秋", "烟绯", "久岐忍", "辛焱", "砂糖", "胡桃", "重云", "菲谢尔", "诺艾尔",
    "迪奥娜", "鹿野院平藏",
)

_SPACES = frozenset("\t\n\f\r ")


def _in_ranges(char: str, ranges) -> bool:
    code = ord(char)
    return any(low <= code <= high for low, high in ranges)


def _is_punct(char: str) -> bool:
    return unicodedata.category(char).startswith("P")


def _is_latin_or_digit(char: str) -> bool:
    return char.isascii() and (char.isalpha() or char.isdigit())


_JP_RANGES = (
    (0x3005, 0x3005), (0x3040, 0x30FF), (0x4E00, 0x9FFF), (0xFF11, 0xFF19),
    (0xFF21, 0xFF3A), (0xFF41, 0xFF5A), (0xFF66, 0xFF9D),
)
_KR_RANGES = ((0x3131, 0x3163), (0xAC00, 0xD7FF))
_CN_RANGES = ((0x4E00, 0x9FA5),)


def _jp_char(char: str) -> bool:
    return _is_latin_or_digit(char) or char in _SPACES or _in_ranges(char, _JP_RANGES) or _is_punct(char)


def _kr_char(char: str) -> bool:
    return _is_latin_or_digit(char) or char in _SPACES or _in_ranges(char, _KR_RANGES) or _is_punct(char)


def _cn_char(char: str) -> bool:
    return char in _SPACES or _in_ranges(char, _CN_RANGES) or _is_punct(char)


def _pattern(names) -> re.Pattern:
    return re.compile("让(" + "|".join(map(re.escape, names)) + ")说(.+)", re.DOTALL)


_RULES: tuple[tuple[re.Pattern, Callable[[str], bool]], ...] = (
    (_pattern(JP_SPEAKERS), _jp_char),
    (_pattern(KR_SPEAKERS), _kr_char),
    (_pattern(CN_SPEAKERS), _cn_char),
)


def speech_url(speaker: str, text: str) -> str:
    """Address of the synthesised recording of ``speaker`` saying ``text``."""
    if speaker in JP_SPEAKERS:
        return JP_API.format(text=quote_plus(text), id=JP_SPEAKERS[speaker])
    if speaker in KR_SPEAKERS:
        return KR_API.format(text=quote_plus(text), id=KR_SPEAKERS[speaker])
    if speaker in CN_SPEAKERS:
        return CN_API.format(speaker=quote_plus(speaker), text=quote_plus(text))
    raise ValueError(f"unknown speaker: {speaker}")


def parse_request(message: str) -> tuple[str, str] | None:
    """Speaker and text of a "让<speaker>说<text>" request in the speaker's language."""
    for pattern, allowed in _RULES:
        match = pattern.fullmatch(message)
        if match and all(allowed(char) for char in match.group(2)):
            return match.group(1), match.group(2)
    return None
"""Turning image classification scores into short verdicts."""

from __future__ import annotations

from dataclasses import dataclass

THRESHOLD = 0.3
HSO_IMAGE = "https://gchat.qpic.cn/gchatpic_new//--4234EDEC5F147A4C319A41149D7E0EA9/0"
"""Image sent along with an automatic verdict."""


@dataclass
class Picture:
    """Class probabilities of an image."""

    drawings: float = 0.0
    hentai: float = 0.0
    neutral: float = 0.0
    porn: float = 0.0
    sexy: float = 0.0


def _flags(picture: Picture) -> list[str]:
    flags = []
    if picture.hentai > THRESHOLD:
        flags.append(" hentai")
    if picture.porn > THRESHOLD:
        flags.append(" porn")
    if picture.sexy > THRESHOLD:
        flags.append(" hso")
    return flags


def judge(picture: Picture) -> str:
    """Verdict given when someone asks for a rating."""
    if picture.neutral > THRESHOLD:
        return "普通哦"
    if picture.drawings > THRESHOLD or picture.neutral < THRESHOLD:
        kind = "二次元"
    else:
        kind = "三次元"
    return kind + "".join(_flags(picture))


def auto_judge(picture: Picture) -> str | None:
    """Verdict for an image seen in passing; None when nothing is worth saying."""
    if picture.neutral > THRESHOLD:
        return None
    kind = "二次元" if picture.drawings > THRESHOLD else "三次元"
    flags = _flags(picture)
    if not flags:
        return None
    return kind + "".join(flags)
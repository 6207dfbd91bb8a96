"""Being reborn at random: a country by population share and a gender."""

from __future__ import annotations

import json
from bisect import bisect_left
from itertools import accumulate
from pathlib import Path
from typing import Any, Iterable

_CHANCE_RANGE = 1 << 31
_FAIL_LIMIT = 1 << 27


class WeightedChooser:
    """Picks items with probability proportional to non-negative integer weights."""

    def __init__(self, choices: Iterable[tuple[Any, int]]) -> None:
        ordered = sorted(((item, int(weight)) for item, weight in choices), key=lambda c: c[1])
        if any(weight < 0 for _, weight in ordered):
            raise ValueError("weights must not be negative")
        self._items = [item for item, _ in ordered]
        self._totals = list(accumulate(weight for _, weight in ordered))
        if not self._totals or self._totals[-1] <= 0:
            raise ValueError("no choices with positive weight")

    def pick(self, rng) -> Any:
        """One item drawn using ``rng.randrange``."""
        point = rng.randrange(self._totals[-1]) + 1
        return self._items[bisect_left(self._totals, point)]


GENDER = WeightedChooser([("男孩子", 50707), ("女孩子", 48292), ("雌雄同体", 1001)])


def load_areas(path) -> WeightedChooser:
    """A chooser over the countries of a JSON list of ``{"name", "weight"}`` records."""
    records = json.loads(Path(path).read_text(encoding="utf-8"))
    return WeightedChooser((record["name"], int(record["weight"] * 1e9)) for record in records)


def reborn(areas: WeightedChooser, rng) -> str:
    """The announcement of a new life, or of one that did not make it to birth."""
    if rng.randrange(_CHANCE_RANGE) > _FAIL_LIMIT:
        return f"投胎成功！\n您出生在 {areas.pick(rng)}, 是 {GENDER.pick(rng)}。"
    return "投胎失败！\n您没能活到出生，祝您下次好运！"
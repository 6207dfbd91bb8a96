"""A per-group, per-day marriage registry for the "marry a group member" game."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from datetime import date
from enum import IntEnum
from typing import Callable

DATE_FORMAT = "%Y/%m/%d"
ALL_GROUPS = "ALL"
NAME_WIDTH_LIMIT = 350

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS updateinfo ("
    " gid INTEGER PRIMARY KEY,"
    " updatetime TEXT NOT NULL)",
    "CREATE TABLE IF NOT EXISTS couple ("
    " gid INTEGER NOT NULL,"
    " user INTEGER NOT NULL,"
    " target INTEGER NOT NULL,"
    " username TEXT NOT NULL,"
    " targetname TEXT NOT NULL,"
    " updatetime TEXT NOT NULL,"
    " PRIMARY KEY (gid, user))",
)

_COLUMNS = "user, target, username, targetname, updatetime"


class Status(IntEnum):
    """A member's standing in today's registry."""

    TARGET = 0
    """Married by someone else."""
    USER = 1
    """Married someone (a target of 0 means they chose to stay single)."""
    SINGLE = 3
    """Not registered today."""


@dataclass
class Couple:
    """One registered marriage."""

    user: int
    target: int
    user_name: str
    target_name: str
    update_time: str


def _day(today: date | None) -> str:
    return (today or date.today()).strftime(DATE_FORMAT)


def truncate_name(name: str, measure: Callable[[str], float], limit: float = NAME_WIDTH_LIMIT) -> str:
    """Shorten ``name`` with an ellipsis when its drawn width exceeds ``limit``.

    ``measure(char)`` gives the width of one character.
    """
    width = 0
    last_fitting = 0
    for index, char in enumerate(name):
        width += int(measure(char))
        if width > limit:
            break
        last_fitting = index
    if width > limit:
        return name[: max(last_fitting - 1, 0)] + "......"
    return name


def _couple(row) -> Couple:
    return Couple(user=row[0], target=row[1], user_name=row[2], target_name=row[3], update_time=row[4])


class MarriageRegistry:
    """Today's couples of every group, kept in a SQLite database."""

    def __init__(self, path) -> None:
        self._lock = threading.RLock()
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        with self._lock:
            for statement in _SCHEMA:
                self._db.execute(statement)
            self._db.commit()

    def check_update(self, group_id: int, today: date | None = None) -> str:
        """Day the group's registry was last reset; a new group starts today."""
        with self._lock:
            row = self._db.execute(
                "SELECT updatetime FROM updateinfo WHERE gid = ?", (group_id,)
            ).fetchone()
            if row is not None:
                return row[0]
            stamp = _day(today)
            self._db.execute(
                "REPLACE INTO updateinfo (gid, updatetime) VALUES (?, ?)", (group_id, stamp)
            )
            self._db.commit()
            return stamp

    def reset(self, group, today: date | None = None) -> None:
        """Clear the couples of one group, or of every group when ``group`` is "ALL"."""
        stamp = _day(today)
        with self._lock:
            if str(group) == ALL_GROUPS:
                groups = {
                    row[0]
                    for row in self._db.execute("SELECT gid FROM updateinfo UNION SELECT gid FROM couple")
                }
                self._db.execute("DELETE FROM couple")
            else:
                groups = {int(group)}
                self._db.execute("DELETE FROM couple WHERE gid = ?", (int(group),))
            self._db.executemany(
                "REPLACE INTO updateinfo (gid, updatetime) VALUES (?, ?)",
                [(gid, stamp) for gid in groups],
            )
            self._db.commit()

    def _find(self, group_id: int, column: str, value: int) -> Couple | None:
        row = self._db.execute(
            f"SELECT {_COLUMNS} FROM couple WHERE gid = ? AND {column} = ?", (group_id, value)
        ).fetchone()
        return None if row is None else _couple(row)

    def lookup(self, group_id: int, user_id: int) -> tuple[Couple | None, Status]:
        """The member's marriage and standing; ``(None, Status.SINGLE)`` if unregistered."""
        with self._lock:
            couple = self._find(group_id, "user", user_id)
            if couple is not None:
                return couple, Status.USER
            couple = self._find(group_id, "target", user_id)
            if couple is not None:
                return couple, Status.TARGET
        return None, Status.SINGLE

    def _store(self, group_id: int, couple: Couple) -> None:
        self._db.execute(
            f"REPLACE INTO couple (gid, {_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (group_id, couple.user, couple.target, couple.user_name, couple.target_name,
             couple.update_time),
        )
        self._db.commit()

    def register(
        self,
        group_id: int,
        user_id: int,
        target: int,
        user_name: str,
        target_name: str,
        today: date | None = None,
    ) -> Couple:
        """Register ``user_id`` as married to ``target`` (0 for single by choice)."""
        couple = Couple(user_id, target, user_name, target_name, _day(today))
        with self._lock:
            self._store(group_id, couple)
        return couple

    def remarry(
        self,
        group_id: int,
        user_id: int,
        target: int,
        user_name: str,
        target_name: str,
        today: date | None = None,
    ) -> Couple:
        """Rewrite an existing record held by ``user_id`` or ``target`` as a new couple.

        Raises :class:`LookupError` when neither holds a record as the marrying side.
        """
        with self._lock:
            couple = self._find(group_id, "user", user_id) or self._find(group_id, "user", target)
            if couple is None:
                raise LookupError(f"no registered couple for {user_id} or {target}")
            couple = Couple(user_id, target, user_name, target_name, _day(today))
            self._store(group_id, couple)
        return couple

    def divorce_wife(self, group_id: int, wife: int) -> None:
        """Remove the couple in which ``wife`` is the one married."""
        with self._lock:
            self._db.execute("DELETE FROM couple WHERE gid = ? AND target = ?", (group_id, wife))
            self._db.commit()

    def divorce_husband(self, group_id: int, husband: int) -> None:
        """Remove the couple in which ``husband`` is the one marrying."""
        with self._lock:
            self._db.execute("DELETE FROM couple WHERE gid = ? AND user = ?", (group_id, husband))
            self._db.commit()

    def roster(self, group_id: int) -> list[Couple]:
        """Today's real couples of a group, leaving out members single by choice."""
        with self._lock:
            rows = self._db.execute(
                f"SELECT {_COLUMNS} FROM couple WHERE gid = ? AND target != 0 ORDER BY user",
                (group_id,),
            ).fetchall()
        return [_couple(row) for row in rows]

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "MarriageRegistry":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
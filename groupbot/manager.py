"""Group management helpers: mutes, welcome and farewell texts, roll calls and gist checks."""

from __future__ import annotations

import hashlib
import logging
import re
import sqlite3
import threading
import time
from typing import Callable, Mapping, Sequence

log = logging.getLogger(__name__)

MAX_MUTE_MINUTES = 43199
"""Longest mute the chat service allows, just under thirty days."""

GIST_RAW_URL = "https://gist.githubusercontent.com/{user}/{hash}/raw/{file}"
GIST_VALID_SECONDS = 600
ANSWER_MARKER = "答案："
AVATAR_URL = "http://q4.qlogo.cn/g?b=qq&nk={uid}&s=640"

_MINUTE_UNITS = frozenset({"分钟", "min", "mins", "m"})
_HOUR_UNITS = frozenset({"小时", "hour", "hours", "h"})
_DAY_UNITS = frozenset({"天", "day", "days", "d"})

_ENABLE_WORDS = frozenset({"开启", "打开", "启用"})
_DISABLE_WORDS = frozenset({"关闭", "关掉", "禁用"})

_INT64_MASK = 0x7FFFFFFF_FFFFFFFF
_TIMESTAMP = re.compile(r"[+-]?[0-9]+")

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS welcome (gid INTEGER PRIMARY KEY, msg TEXT NOT NULL)",
    "CREATE TABLE IF NOT EXISTS farewell (gid INTEGER PRIMARY KEY, msg TEXT NOT NULL)",
    "CREATE TABLE IF NOT EXISTS member (qq INTEGER PRIMARY KEY, ghun TEXT NOT NULL)",
)


class GistCheckError(Exception):
    """A join request that did not pass the gist check; the message is the reason."""


def mute_minutes(amount, unit: str) -> int:
    """Mute length in minutes for ``amount`` of ``unit``, capped at :data:`MAX_MUTE_MINUTES`.

    An unknown unit is taken as minutes.
    """
    minutes = int(amount)
    if unit in _HOUR_UNITS:
        minutes *= 60
    elif unit in _DAY_UNITS:
        minutes *= 60 * 24
    if minutes >= MAX_MUTE_MINUTES + 1:
        minutes = MAX_MUTE_MINUTES
    return minutes


def unescape_brackets(text: str) -> str:
    """Turn escaped square brackets back into CQ code brackets."""
    return text.replace("&#91;", "[").replace("&#93;", "]")


def welcome_to_cq(template: str, user_id: int, nickname: str, group_id: int, group_name: str) -> str:
    """Fill the placeholders of a welcome or farewell template with CQ codes and names."""
    uid = str(user_id)
    replacements = (
        ("{at}", f"[CQ:at,qq={uid}]"),
        ("{nickname}", nickname),
        ("{avatar}", "[CQ:image,file=" + AVATAR_URL.format(uid=uid) + "]"),
        ("{uid}", uid),
        ("{gid}", str(group_id)),
        ("{groupname}", group_name),
    )
    text = template
    for placeholder, value in replacements:
        text = text.replace(placeholder, value)
    return text


def pick_lucky_member(members: Sequence[Mapping], rng) -> Mapping:
    """Pick one of the ten members who spoke most recently.

    ``members`` are member records carrying ``last_sent_time``.
    """
    if not members:
        raise ValueError("no members to pick from")
    ordered = sorted(members, key=lambda m: int(m.get("last_sent_time", 0)))
    return rng.choice(ordered[-10:])


def apply_toggle(data: int, option: str, bit: int) -> int | None:
    """Set or clear ``bit`` in ``data`` by an on/off word; None for any other word."""
    if option in _ENABLE_WORDS:
        return data | bit
    if option in _DISABLE_WORDS:
        return data & (_INT64_MASK ^ bit) & _INT64_MASK
    return None


def parse_gist_answer(comment: str) -> tuple[str, str]:
    """Split the answer of a join request into GitHub user name and gist hash."""
    start = comment.find(ANSWER_MARKER)
    if start < 0:
        raise GistCheckError("格式错误!")
    answer = comment[start + len(ANSWER_MARKER):]
    divider = answer.find("/")
    if divider <= 0:
        raise GistCheckError("格式错误!")
    return answer[:divider], answer[divider + 1:]


def group_gist_filename(group_id: int) -> str:
    """Name of the gist file a group expects: lower-case md5 of its number."""
    return hashlib.md5(str(group_id).encode("ascii")).hexdigest()


class ManagerStore:
    """Welcome and farewell texts per group, and members admitted by gist."""

    def __init__(self, path) -> None:
        self._lock = threading.Lock()
        self._db = sqlite3.connect(str(path), check_same_thread=False)
        with self._lock:
            for statement in _SCHEMA:
                self._db.execute(statement)
            self._db.commit()

    def _put(self, table: str, group_id: int, message: str) -> None:
        with self._lock:
            self._db.execute(f"REPLACE INTO {table} (gid, msg) VALUES (?, ?)", (group_id, message))
            self._db.commit()

    def _get(self, table: str, group_id: int) -> str | None:
        with self._lock:
            row = self._db.execute(f"SELECT msg FROM {table} WHERE gid = ?", (group_id,)).fetchone()
        return None if row is None else row[0]

    def set_welcome(self, group_id: int, message: str) -> None:
        self._put("welcome", group_id, message)

    def welcome(self, group_id: int) -> str | None:
        """The group's welcome template, or None if none is set."""
        return self._get("welcome", group_id)

    def set_farewell(self, group_id: int, message: str) -> None:
        self._put("farewell", group_id, message)

    def farewell(self, group_id: int) -> str | None:
        """The group's farewell template, or None if none is set."""
        return self._get("farewell", group_id)

    def has_github_user(self, github_user: str) -> bool:
        with self._lock:
            row = self._db.execute("SELECT 1 FROM member WHERE ghun = ?", (github_user,)).fetchone()
        return row is not None

    def add_member(self, qq: int, github_user: str) -> None:
        with self._lock:
            self._db.execute("REPLACE INTO member (qq, ghun) VALUES (?, ?)", (qq, github_user))
            self._db.commit()

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "ManagerStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def check_new_user(
    store: ManagerStore,
    qq: int,
    group_id: int,
    github_user: str,
    gist_hash: str,
    fetch: Callable[[str], bytes],
    now: float | None = None,
) -> None:
    """Admit ``qq`` if their gist holds a Unix time within ten minutes of ``now``.

    ``fetch(url)`` returns the raw gist body. Raises :class:`GistCheckError`
    with the reason when the check fails; on success the member is recorded.
    """
    if store.has_github_user(github_user):
        raise GistCheckError("该github用户已入群")
    url = GIST_RAW_URL.format(user=github_user, hash=gist_hash, file=group_gist_filename(group_id))
    log.debug("[gist]visit url: %s", url)
    try:
        data = fetch(url)
    except Exception as error:
        raise GistCheckError("无法连接到gist: " + str(error)) from error
    text = data.decode("utf-8", errors="replace") if isinstance(data, (bytes, bytearray)) else str(data)
    log.debug("[gist]get data: %s", text)
    if not _TIMESTAMP.fullmatch(text):
        raise GistCheckError("时间戳格式错误: " + text)
    stamp = int(text)
    current = int(time.time() if now is None else now)
    if abs(current - stamp) >= GIST_VALID_SECONDS:
        raise GistCheckError("时间戳超时")
    store.add_member(qq, github_user)
"""Storing, scheduling and listing group reminders."""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from groupbot.cron import CronError, CronSchedule
from groupbot.timerspec import Timer
from groupbot.wake import next_wake_time, should_fire

log = logging.getLogger(__name__)

Sender = Callable[[int, int, list], None]

_AT_ALL = {"type": "at", "data": {"qq": "all"}}

_SCHEMA = """
CREATE TABLE IF NOT EXISTS timer (
    id INTEGER PRIMARY KEY,
    emdwhm INTEGER NOT NULL,
    sid INTEGER NOT NULL,
    gid INTEGER NOT NULL,
    alert TEXT NOT NULL,
    cron TEXT NOT NULL,
    url TEXT NOT NULL
)
"""


def build_alert(timer: Timer) -> list[dict]:
    """Message segments announcing ``timer`` to the whole group."""
    segments = [dict(_AT_ALL), {"type": "text", "data": {"text": timer.alert}}]
    if timer.url:
        segments.append({"type": "image", "data": {"file": timer.url, "cache": "0"}})
    return segments


@dataclass
class _Job:
    timer: Timer
    stop: threading.Event = field(default_factory=threading.Event)
    thread: threading.Thread | None = None


class Clock:
    """Keeps reminders in a database and wakes them up when due.

    ``sender(self_id, group_id, segments)`` delivers a reminder; a ``self_id``
    of 0 means any bot.
    """

    def __init__(self, db_path, sender: Sender) -> None:
        self._sender = sender
        self._lock = threading.RLock()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        self._db.execute(_SCHEMA)
        self._db.commit()
        self._timers: dict[int, Timer] = {}
        self._jobs: dict[int, _Job] = {}
        for timer in self.stored_timers():
            self.register_timer(timer, False)

    def register_timer(self, timer: Timer, save: bool) -> bool:
        """Schedule ``timer``; with ``save`` its id is derived and it is stored.

        Returns whether the timer is now running. A bad cron expression leaves
        the reason in ``timer.alert``.
        """
        if save:
            timer.id = timer.timer_id()
        key = timer.id
        previous = self.get_timer(key)
        if previous is not None and previous is not timer:
            previous._set_enabled(False)
            self._stop_job(key)
        log.info("[群管]注册计时器 %d", key)

        if timer.cron:
            try:
                schedule = CronSchedule.parse(timer.cron)
            except CronError as error:
                timer.alert = str(error)
                return False
            try:
                if save:
                    self.add_timer_into_db(timer)
                self.add_timer_into_map(timer)
            except sqlite3.Error as error:
                log.error("[群管]%s", error)
                return False
            self._start_job(key, timer, schedule.next_after, lambda now: True)
            return True

        if save:
            self.add_timer_into_db(timer)
        self.add_timer_into_map(timer)
        if not timer.enabled():
            return False
        self._start_job(
            key,
            timer,
            lambda now: next_wake_time(timer, now),
            lambda now: should_fire(timer, now),
        )
        return True

    def _start_job(self, key, timer, next_time, due) -> None:
        job = _Job(timer)
        job.thread = threading.Thread(
            target=self._run, args=(job, next_time, due), name=f"timer-{key:08x}", daemon=True
        )
        with self._lock:
            self._jobs[key] = job
        job.thread.start()

    def _run(self, job: _Job, next_time, due) -> None:
        timer = job.timer
        while not job.stop.is_set():
            now = datetime.now()
            wake = next_time(now)
            log.debug("[群管]计时器%08x将睡眠%ds", timer.id, (wake - now).total_seconds())
            if job.stop.wait(max((wake - now).total_seconds(), 0.0)):
                break
            if due(datetime.now()):
                try:
                    self._sender(timer.self_id, timer.group_id, build_alert(timer))
                except Exception:  # a failed delivery must not end the timer
                    log.exception("[群管]发送提醒失败")

    def _stop_job(self, key: int) -> None:
        with self._lock:
            job = self._jobs.pop(key, None)
        if job is not None:
            job.stop.set()

    def cancel_timer(self, key: int) -> bool:
        """Stop and forget the timer with ``key``; False if there is none."""
        timer = self.get_timer(key)
        if timer is None:
            return False
        if not timer.cron:
            timer._set_enabled(False)
        self._stop_job(key)
        with self._lock:
            self._timers.pop(key, None)
            try:
                self._db.execute("DELETE FROM timer WHERE id = ?", (key,))
                self._db.commit()
            except sqlite3.Error as error:
                log.error("[群管]%s", error)
                return False
        return True

    def list_timers(self, group_id: int) -> list[str]:
        """Readable schedules of all timers of a group, one line each."""
        with self._lock:
            timers = [t for t in self._timers.values() if t.group_id == group_id]
        lines = []
        for timer in timers:
            info = timer.info()
            text = info[info.index("]") + 1:] + "\n"
            text = text.replace("-1", "每")
            text = text.replace("月0日0周", "月周天")
            text = text.replace("月0日", "月")
            text = text.replace("日0周", "日")
            lines.append(text)
        return lines

    def get_timer(self, key: int) -> Timer | None:
        with self._lock:
            return self._timers.get(key)

    def add_timer_into_db(self, timer: Timer) -> None:
        with self._lock:
            self._db.execute(
                "INSERT OR REPLACE INTO timer (id, emdwhm, sid, gid, alert, cron, url)"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                (timer.id, timer.packed, timer.self_id, timer.group_id,
                 timer.alert, timer.cron, timer.url),
            )
            self._db.commit()

    def add_timer_into_map(self, timer: Timer) -> None:
        with self._lock:
            self._timers[timer.id] = timer

    def stored_timers(self) -> list[Timer]:
        """All timers in the database."""
        with self._lock:
            rows = self._db.execute(
                "SELECT id, emdwhm, sid, gid, alert, cron, url FROM timer"
            ).fetchall()
        return [
            Timer(id=r[0], packed=r[1], self_id=r[2], group_id=r[3], alert=r[4], cron=r[5], url=r[6])
            for r in rows
        ]

    def close(self) -> None:
        """Stop every running timer and close the database."""
        with self._lock:
            keys = list(self._jobs)
        for key in keys:
            self._stop_job(key)
        with self._lock:
            self._db.close()

    def __enter__(self) -> "Clock":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
"""A cron job runner.

Jobs are registered with a schedule (a six-field spec such as
"0 30 * * * *", a descriptor such as "@hourly", or "@every 1h30m") and are
invoked, each in its own thread, whenever the schedule fires. The runner
sleeps until the earliest entry is due, runs every entry due at that moment,
computes their next activation times and goes back to sleep. Entries may be
added and inspected while the runner is going. Stopping the runner does not
stop jobs that are already running.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from typing import Any, Callable

from imail.cron.parser import parse
from imail.cron.spec import Schedule

_log = logging.getLogger(__name__)


@dataclass
class Entry:
    """A schedule, the job it runs, and its run history.

    ``next`` is None until the runner has started, or when the schedule can
    never be satisfied; ``prev`` is None until the job has run once.
    """

    description: str
    spec: str
    schedule: Schedule
    job: Any
    next: datetime | None = None
    prev: datetime | None = None
    exec_times: int = 0


def _sort_key(entry: Entry):
    # Entries that never fire go last.
    return (entry.next is None, entry.next or datetime.min)


def _invoke(job: Any) -> None:
    run = getattr(job, "run", None)
    if callable(run):
        run()
    else:
        job()


class Cron:
    """Runs jobs on their schedules in a given time zone (local by default)."""

    def __init__(self, location: tzinfo | None = None) -> None:
        if location is None:
            location = datetime.now().astimezone().tzinfo
        self._location = location
        self._entries: list[Entry] = []
        self._cond = threading.Condition()
        self._running = False
        self._stopping = False
        self._stopped = threading.Event()
        self._loop_thread: threading.Thread | None = None
        self.error_log: logging.Logger | None = None

    def add_func(self, desc: str, spec: str, cmd: Callable[[], Any]) -> Entry:
        """Run a function on the schedule given by spec."""
        return self.add_job(desc, spec, cmd)

    def add_job(self, desc: str, spec: str, job: Any) -> Entry:
        """Run a job (an object with run(), or a callable) on spec.

        Raises CronParseError if spec is not valid.
        """
        schedule = parse(spec)
        return self.schedule(desc, spec, schedule, job)

    def schedule(self, desc: str, spec: str, schedule: Schedule, job: Any) -> Entry:
        """Run a job on an already built schedule."""
        entry = Entry(desc, spec, schedule, job)
        with self._cond:
            if self._running:
                entry.next = schedule.next(self._now())
                self._cond.notify_all()
            self._entries.append(entry)
        return entry

    def entries(self) -> list[Entry]:
        """Return copies of the current entries."""
        with self._cond:
            return [replace(entry) for entry in self._entries]

    def location(self) -> tzinfo:
        """Return the time zone the schedules are interpreted in."""
        return self._location

    def start(self) -> None:
        """Start the runner in a background thread; no-op if already running."""
        with self._cond:
            if self._running:
                return
            self._begin()
            thread = threading.Thread(target=self._run_loop, name="cron", daemon=True)
            self._loop_thread = thread
        thread.start()

    def run(self) -> None:
        """Run the scheduler in the calling thread until stopped; no-op if running."""
        with self._cond:
            if self._running:
                return
            self._begin()
            self._loop_thread = threading.current_thread()
        self._run_loop()

    def stop(self) -> None:
        """Stop the scheduler if it is running; otherwise do nothing."""
        with self._cond:
            if not self._running:
                return
            self._stopping = True
            self._cond.notify_all()
            own_thread = self._loop_thread is threading.current_thread()
            if own_thread:
                self._running = False
        if not own_thread:
            self._stopped.wait()

    def _begin(self) -> None:
        self._running = True
        self._stopping = False
        self._stopped.clear()

    def _now(self) -> datetime:
        return datetime.now(self._location)

    def _run_loop(self) -> None:
        try:
            with self._cond:
                now = self._now()
                for entry in self._entries:
                    entry.next = entry.schedule.next(now)

                while not self._stopping:
                    self._entries.sort(key=_sort_key)
                    timeout = None
                    if self._entries and self._entries[0].next is not None:
                        timeout = (self._entries[0].next - self._now()).total_seconds()
                    if timeout is None or timeout > 0:
                        self._cond.wait(timeout)
                        if self._stopping:
                            break

                    now = self._now()
                    for entry in self._entries:
                        if entry.next is None or entry.next > now:
                            break
                        self._launch(entry.job)
                        entry.exec_times += 1
                        entry.prev = entry.next
                        entry.next = entry.schedule.next(now)
        finally:
            with self._cond:
                self._running = False
                self._stopping = False
                self._loop_thread = None
                self._stopped.set()

    def _launch(self, job: Any) -> None:
        threading.Thread(
            target=self._run_with_recovery, args=(job,), name="cron-job", daemon=True
        ).start()

    def _run_with_recovery(self, job: Any) -> None:
        try:
            _invoke(job)
        except Exception as exc:
            (self.error_log or _log).exception("cron: panic running job: %s", exc)
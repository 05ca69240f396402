"""Cron schedules: per-field bit sets and fixed intervals."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo

STAR_BIT = 1 << 63
"""Set on a field's bits when the expression for it contained a star."""

_ONE_SECOND = timedelta(seconds=1)
_ONE_MINUTE = timedelta(minutes=1)
_ONE_HOUR = timedelta(hours=1)
_YEARS_TO_SEARCH = 5


@dataclass(frozen=True)
class Bounds:
    """The range of values a cron field accepts, and names that stand for values."""

    low: int
    high: int
    names: Mapping[str, int] | None = None


SECONDS = Bounds(0, 59)
MINUTES = Bounds(0, 59)
HOURS = Bounds(0, 23)
DOM = Bounds(1, 31)
MONTHS = Bounds(
    1,
    12,
    {
        "jan": 1,
        "feb": 2,
        "mar": 3,
        "apr": 4,
        "may": 5,
        "jun": 6,
        "jul": 7,
        "aug": 8,
        "sep": 9,
        "oct": 10,
        "nov": 11,
        "dec": 12,
    },
)
DOW = Bounds(
    0,
    6,
    {"sun": 0, "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6},
)


def _shift(t: datetime, delta: timedelta) -> datetime:
    """Add an elapsed duration to t, honouring zone transitions."""
    if t.tzinfo is None:
        return t + delta
    return (t.astimezone(timezone.utc) + delta).astimezone(t.tzinfo)


def _local(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    microsecond: int = 0,
    tz: tzinfo | None = None,
) -> datetime:
    """Build a wall-clock time, normalising overflowing months and days."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    day_of = date(year, month, 1) + timedelta(days=day - 1)
    naive = datetime.combine(day_of, time(hour, minute, second, microsecond))
    if tz is None:
        return naive
    return naive.replace(tzinfo=tz).astimezone(timezone.utc).astimezone(tz)


def _add_date(t: datetime, months: int = 0, days: int = 0) -> datetime:
    return _local(
        t.year,
        t.month + months,
        t.day + days,
        t.hour,
        t.minute,
        t.second,
        t.microsecond,
        t.tzinfo,
    )


def _has(bits: int, value: int) -> bool:
    return bool(bits >> value & 1)


class Schedule(ABC):
    """A duty cycle that yields activation times."""

    @abstractmethod
    def next(self, t: datetime) -> datetime | None:
        """Return the next activation after t, or None if there is none."""


@dataclass(frozen=True)
class SpecSchedule(Schedule):
    """A crontab specification, stored as one bit set per field."""

    second: int
    minute: int
    hour: int
    dom: int
    month: int
    dow: int

    def next(self, t: datetime) -> datetime | None:
        """Return the first matching second after t, or None within five years."""
        t = _shift(t, _ONE_SECOND - timedelta(microseconds=t.microsecond))
        added = False
        year_limit = t.year + _YEARS_TO_SEARCH
        stages = (
            self._seek_month,
            self._seek_day,
            self._seek_hour,
            self._seek_minute,
            self._seek_second,
        )
        while t.year <= year_limit:
            for stage in stages:
                t, added, wrapped = stage(t, added)
                if wrapped:
                    break
            else:
                return t
        return None

    def _seek_month(self, t: datetime, added: bool):
        while not _has(self.month, t.month):
            if not added:
                added = True
                t = _local(t.year, t.month, 1, tz=t.tzinfo)
            t = _add_date(t, months=1)
            if t.month == 1:
                return t, added, True
        return t, added, False

    def _seek_day(self, t: datetime, added: bool):
        while not self._day_matches(t):
            if not added:
                added = True
                t = _local(t.year, t.month, t.day, tz=t.tzinfo)
            t = _add_date(t, days=1)
            if t.day == 1:
                return t, added, True
        return t, added, False

    def _seek_hour(self, t: datetime, added: bool):
        while not _has(self.hour, t.hour):
            if not added:
                added = True
                t = _local(t.year, t.month, t.day, t.hour, tz=t.tzinfo)
            t = _shift(t, _ONE_HOUR)
            if t.hour == 0:
                return t, added, True
        return t, added, False

    def _seek_minute(self, t: datetime, added: bool):
        while not _has(self.minute, t.minute):
            if not added:
                added = True
                t = t.replace(second=0, microsecond=0)
            t = _shift(t, _ONE_MINUTE)
            if t.minute == 0:
                return t, added, True
        return t, added, False

    def _seek_second(self, t: datetime, added: bool):
        while not _has(self.second, t.second):
            if not added:
                added = True
                t = t.replace(microsecond=0)
            t = _shift(t, _ONE_SECOND)
            if t.second == 0:
                return t, added, True
        return t, added, False

    def _day_matches(self, t: datetime) -> bool:
        """Check day of month and day of week; a star on either means both must match."""
        dom_match = _has(self.dom, t.day)
        dow_match = _has(self.dow, t.isoweekday() % 7)
        if self.dom & STAR_BIT or self.dow & STAR_BIT:
            return dom_match and dow_match
        return dom_match or dow_match


@dataclass(frozen=True)
class ConstantDelaySchedule(Schedule):
    """A recurring interval of whole seconds, such as "every 5 minutes"."""

    delay: timedelta

    def next(self, t: datetime) -> datetime:
        """Return t plus the delay, rounded down to the whole second."""
        return _shift(t, self.delay - timedelta(microseconds=t.microsecond))


def every(duration) -> ConstantDelaySchedule:
    """Return a schedule firing once per duration (a timedelta or seconds).

    Durations under a second become one second; fractions of a second are dropped.
    """
    if not isinstance(duration, timedelta):
        duration = timedelta(seconds=duration)
    if duration < _ONE_SECOND:
        duration = _ONE_SECOND
    return ConstantDelaySchedule(duration - duration % _ONE_SECOND)
"""Parsing of cron specifications, descriptors and durations."""

from __future__ import annotations

import enum
import re
from datetime import timedelta

from imail.convert import StrTo
from imail.cron.spec import (
    DOM,
    DOW,
    HOURS,
    MINUTES,
    MONTHS,
    SECONDS,
    STAR_BIT,
    Bounds,
    Schedule,
    SpecSchedule,
    every,
)

_MASK64 = (1 << 64) - 1
_MAX_DURATION_NS = (1 << 63) - 1
_EVERY = "@every "


class CronParseError(ValueError):
    """A cron specification could not be parsed."""


class ParseOption(enum.IntFlag):
    """Fields a parser expects, and features it enables."""

    SECOND = 1
    MINUTE = 2
    HOUR = 4
    DOM = 8
    MONTH = 16
    DOW = 32
    DOW_OPTIONAL = 64
    DESCRIPTOR = 128


_PLACES = (
    ParseOption.SECOND,
    ParseOption.MINUTE,
    ParseOption.HOUR,
    ParseOption.DOM,
    ParseOption.MONTH,
    ParseOption.DOW,
)
_DEFAULTS = ("0", "0", "0", "*", "*", "*")
_FIELD_BOUNDS = (SECONDS, MINUTES, HOURS, DOM, MONTHS, DOW)


class Parser:
    """A cron parser configured with the fields it expects.

    Fields left out fall back to a default: 0 for time fields, * for dates.
    """

    __slots__ = ("options", "optionals")

    def __init__(self, options) -> None:
        options = ParseOption(options)
        optionals = 0
        if options & ParseOption.DOW_OPTIONAL:
            options |= ParseOption.DOW
            optionals += 1
        self.options = options
        self.optionals = optionals

    def __repr__(self) -> str:
        return f"Parser({self.options!r})"

    def parse(self, spec: str) -> Schedule:
        """Return the schedule for spec; raise CronParseError if it is invalid."""
        if not spec:
            raise CronParseError("Empty spec string")
        if spec[0] == "@" and self.options & ParseOption.DESCRIPTOR:
            return parse_descriptor(spec)

        maximum = sum(1 for place in _PLACES if self.options & place)
        minimum = maximum - self.optionals
        fields = spec.split()
        count = len(fields)
        if not minimum <= count <= maximum:
            if minimum == maximum:
                raise CronParseError(
                    f"Expected exactly {minimum} fields, found {count}: {spec}"
                )
            raise CronParseError(
                f"Expected {minimum} to {maximum} fields, found {count}: {spec}"
            )

        expanded = self._expand(fields)
        return SpecSchedule(
            *(get_field(field, bounds) for field, bounds in zip(expanded, _FIELD_BOUNDS))
        )

    def _expand(self, fields: list[str]) -> list[str]:
        expanded = list(_DEFAULTS)
        used = 0
        for index, place in enumerate(_PLACES):
            if self.options & place:
                expanded[index] = fields[used]
                used += 1
            if used == len(fields):
                break
        return expanded


_STANDARD_PARSER = Parser(
    ParseOption.MINUTE
    | ParseOption.HOUR
    | ParseOption.DOM
    | ParseOption.MONTH
    | ParseOption.DOW
    | ParseOption.DESCRIPTOR
)

_DEFAULT_PARSER = Parser(
    ParseOption.SECOND
    | ParseOption.MINUTE
    | ParseOption.HOUR
    | ParseOption.DOM
    | ParseOption.MONTH
    | ParseOption.DOW_OPTIONAL
    | ParseOption.DESCRIPTOR
)


def parse(spec: str) -> Schedule:
    """Parse a six-field spec (seconds first, day of week optional) or a descriptor."""
    return _DEFAULT_PARSER.parse(spec)


def parse_standard(spec: str) -> Schedule:
    """Parse a standard five-field crontab spec or a descriptor."""
    return _STANDARD_PARSER.parse(spec)


def _must_parse_int(expr: str) -> int:
    try:
        num = StrTo(expr).to_int()
    except ValueError as exc:
        raise CronParseError(f"Failed to parse int from {expr}: {exc}") from None
    if num < 0:
        raise CronParseError(f"Negative number ({num}) not allowed: {expr}")
    return num


def _parse_int_or_name(expr: str, names) -> int:
    if names is not None:
        named = names.get(expr.lower())
        if named is not None:
            return named
    return _must_parse_int(expr)


def get_bits(low: int, high: int, step: int) -> int:
    """Set every step-th bit from low to high inclusive, as a 64-bit set."""
    if step == 1:
        return (~(_MASK64 << (high + 1)) & _MASK64) & ((_MASK64 << low) & _MASK64)
    bits = 0
    for value in range(low, high + 1, step):
        bits |= 1 << value
    return bits & _MASK64


def all_bits(bounds: Bounds) -> int:
    """Return every bit within bounds, plus the star bit."""
    return get_bits(bounds.low, bounds.high, 1) | STAR_BIT


def get_range(expr: str, bounds: Bounds) -> int:
    """Return the bits for "number", "number-number" or either with "/step"."""
    range_and_step = expr.split("/")
    low_and_high = range_and_step[0].split("-")
    single = len(low_and_high) == 1
    extra = 0

    if low_and_high[0] in ("*", "?"):
        start, end = bounds.low, bounds.high
        extra = STAR_BIT
    else:
        start = _parse_int_or_name(low_and_high[0], bounds.names)
        if len(low_and_high) == 1:
            end = start
        elif len(low_and_high) == 2:
            end = _parse_int_or_name(low_and_high[1], bounds.names)
        else:
            raise CronParseError(f"Too many hyphens: {expr}")

    if len(range_and_step) == 1:
        step = 1
    elif len(range_and_step) == 2:
        step = _must_parse_int(range_and_step[1])
        # "N/step" means "N-max/step".
        if single:
            end = bounds.high
    else:
        raise CronParseError(f"Too many slashes: {expr}")

    if start < bounds.low:
        raise CronParseError(
            f"Beginning of range ({start}) below minimum ({bounds.low}): {expr}"
        )
    if end > bounds.high:
        raise CronParseError(
            f"End of range ({end}) above maximum ({bounds.high}): {expr}"
        )
    if start > end:
        raise CronParseError(
            f"Beginning of range ({start}) beyond end of range ({end}): {expr}"
        )
    if step == 0:
        raise CronParseError(f"Step of range should be a positive number: {expr}")

    return get_bits(start, end, step) | extra


def get_field(field: str, bounds: Bounds) -> int:
    """Return the bits for a comma-separated list of ranges."""
    bits = 0
    for expr in field.split(","):
        if expr:
            bits |= get_range(expr, bounds)
    return bits


_YEARLY = SpecSchedule(
    1 << SECONDS.low,
    1 << MINUTES.low,
    1 << HOURS.low,
    1 << DOM.low,
    1 << MONTHS.low,
    all_bits(DOW),
)
_MONTHLY = SpecSchedule(
    1 << SECONDS.low,
    1 << MINUTES.low,
    1 << HOURS.low,
    1 << DOM.low,
    all_bits(MONTHS),
    all_bits(DOW),
)
_WEEKLY = SpecSchedule(
    1 << SECONDS.low,
    1 << MINUTES.low,
    1 << HOURS.low,
    all_bits(DOM),
    all_bits(MONTHS),
    1 << DOW.low,
)
_DAILY = SpecSchedule(
    1 << SECONDS.low,
    1 << MINUTES.low,
    1 << HOURS.low,
    all_bits(DOM),
    all_bits(MONTHS),
    all_bits(DOW),
)
_HOURLY = SpecSchedule(
    1 << SECONDS.low,
    1 << MINUTES.low,
    all_bits(HOURS),
    all_bits(DOM),
    all_bits(MONTHS),
    all_bits(DOW),
)

_DESCRIPTORS = {
    "@yearly": _YEARLY,
    "@annually": _YEARLY,
    "@monthly": _MONTHLY,
    "@weekly": _WEEKLY,
    "@daily": _DAILY,
    "@midnight": _DAILY,
    "@hourly": _HOURLY,
}


def parse_descriptor(descriptor: str) -> Schedule:
    """Return the schedule for "@hourly" and friends, or "@every <duration>"."""
    schedule = _DESCRIPTORS.get(descriptor)
    if schedule is not None:
        return schedule
    if descriptor.startswith(_EVERY):
        try:
            duration = parse_duration(descriptor[len(_EVERY):])
        except ValueError as exc:
            raise CronParseError(
                f"Failed to parse duration {descriptor}: {exc}"
            ) from None
        return every(duration)
    raise CronParseError(f"Unrecognized descriptor: {descriptor}")


_UNITS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "1h30m", "-1.5s" or "300ms".

    Raises ValueError for malformed input. Sub-microsecond parts are dropped.
    """
    invalid = ValueError(f'invalid duration "{text}"')
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise invalid

    total_ns = 0
    position = 0
    while position < len(rest):
        match = _DURATION_PART.match(rest, position)
        whole, fraction, unit = match.group(1), match.group(2) or "", match.group(3)
        if not whole and not fraction:
            raise invalid
        if not unit:
            raise ValueError(f'missing unit in duration "{text}"')
        scale = _UNITS.get(unit)
        if scale is None:
            raise ValueError(f'unknown unit "{unit}" in duration "{text}"')
        value = int(whole or "0") * scale
        if fraction:
            value += int(fraction) * scale // 10 ** len(fraction)
        total_ns += value
        if total_ns > _MAX_DURATION_NS:
            raise invalid
        position = match.end()

    micros = total_ns // 1000
    return timedelta(microseconds=-micros if negative else micros)
"""The `datetime` extension: instants and durations.

Functions:
    datetime(String) -> datetime        constructor
    duration(String) -> duration        constructor
    offset(datetime, duration) -> datetime
    durationSince(datetime, datetime) -> duration
    toDate(datetime) -> datetime        midnight (UTC) of the same day
    toTime(datetime) -> duration        time elapsed since that midnight
    toDays, toHours, toMinutes, toSeconds, toMilliseconds(duration) -> Long

Accepted datetime forms:
    YYYY-MM-DD
    YYYY-MM-DDThh:mm:ssZ
    YYYY-MM-DDThh:mm:ss.SSSZ
    YYYY-MM-DDThh:mm:ss(+|-)hhmm
    YYYY-MM-DDThh:mm:ss.SSS(+|-)hhmm

Durations are a sign followed by units in descending order, each at most
once: "2d", "1h30m", "-90s", "1s500ms".

Every result is kept within the signed 64-bit millisecond range; leaving it
is an ArithmeticOverflow. Conversions to coarser units truncate toward zero.
"""

from __future__ import annotations

__all__ = ["EXTENSION", "parse_datetime", "parse_duration"]

import re
from datetime import datetime, timedelta, timezone

from cedar_acp.exceptions import ArithmeticOverflow, ExtensionError
from cedar_acp.extensions.registry import Extension, ExtensionFunction
from cedar_acp.values import LONG_MAX, LONG_MIN, Datetime, Duration, Long, String

EXTENSION_NAME = "datetime"

MILLIS_PER_SECOND = 1000
MILLIS_PER_MINUTE = 60 * MILLIS_PER_SECOND
MILLIS_PER_HOUR = 60 * MILLIS_PER_MINUTE
MILLIS_PER_DAY = 24 * MILLIS_PER_HOUR

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_DATETIME = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})"
    r"(?:T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{3}))?(Z|[+-]\d{4}))?",
    re.ASCII,
)

_DURATION = re.compile(
    r"(-)?"
    r"(?:(\d{1,19})d)?"
    r"(?:(\d{1,19})h)?"
    r"(?:(\d{1,19})m(?!s))?"
    r"(?:(\d{1,19})s)?"
    r"(?:(\d{1,19})ms)?",
    re.ASCII,
)

_DURATION_UNITS = (MILLIS_PER_DAY, MILLIS_PER_HOUR, MILLIS_PER_MINUTE, MILLIS_PER_SECOND, 1)


def _checked(millis: int, operation: str) -> int:
    if millis < LONG_MIN or millis > LONG_MAX:
        raise ArithmeticOverflow(f"datetime overflow in {operation}")
    return millis


def _truncating_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return -quotient if value < 0 else quotient


def parse_datetime(text: str) -> Datetime:
    """Parse one of the accepted datetime forms into a Datetime.

    Raises:
        ExtensionError: If text is malformed or names an invalid date/time.
    """
    match = _DATETIME.fullmatch(text)
    if match is None:
        raise ExtensionError(EXTENSION_NAME, f"invalid datetime: {text!r}")

    year, month, day, hour, minute, second, millis, zone = match.groups()
    try:
        moment = datetime(
            int(year),
            int(month),
            int(day),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            tzinfo=timezone.utc,
        )
    except ValueError as e:
        raise ExtensionError(EXTENSION_NAME, f"invalid datetime: {text!r} ({e})") from None

    offset_minutes = 0
    if zone and zone != "Z":
        zone_hours, zone_minutes = int(zone[1:3]), int(zone[3:5])
        if zone_hours > 23 or zone_minutes > 59:
            raise ExtensionError(EXTENSION_NAME, f"invalid UTC offset in datetime: {text!r}")
        offset_minutes = zone_hours * 60 + zone_minutes
        if zone[0] == "-":
            offset_minutes = -offset_minutes

    total = (moment - _EPOCH) // timedelta(milliseconds=1)
    total += int(millis or 0)
    # Local time = UTC + offset, so UTC = local - offset
    total -= offset_minutes * MILLIS_PER_MINUTE
    return Datetime(total)


def parse_duration(text: str) -> Duration:
    """Parse a duration string such as "1h30m" or "-2d".

    Raises:
        ExtensionError: If text is empty or malformed.
        ArithmeticOverflow: If the total does not fit in 64 bits.
    """
    match = _DURATION.fullmatch(text)
    if match is None or not any(match.groups()[1:]):
        raise ExtensionError(EXTENSION_NAME, f"invalid duration: {text!r}")

    sign, *amounts = match.groups()
    total = sum(int(amount) * unit for amount, unit in zip(amounts, _DURATION_UNITS) if amount)
    if sign:
        total = -total
    return Duration(_checked(total, f"duration({text!r})"))


def _datetime(arg: String) -> Datetime:
    return parse_datetime(arg.value)


def _duration(arg: String) -> Duration:
    return parse_duration(arg.value)


def _offset(moment: Datetime, span: Duration) -> Datetime:
    return Datetime(_checked(moment.millis + span.millis, "offset"))


def _duration_since(moment: Datetime, other: Datetime) -> Duration:
    return Duration(_checked(moment.millis - other.millis, "durationSince"))


def _to_date(moment: Datetime) -> Datetime:
    return Datetime(moment.millis - moment.millis % MILLIS_PER_DAY)


def _to_time(moment: Datetime) -> Duration:
    return Duration(moment.millis % MILLIS_PER_DAY)


def _to_days(span: Duration) -> Long:
    return Long(_truncating_div(span.millis, MILLIS_PER_DAY))


def _to_hours(span: Duration) -> Long:
    return Long(_truncating_div(span.millis, MILLIS_PER_HOUR))


def _to_minutes(span: Duration) -> Long:
    return Long(_truncating_div(span.millis, MILLIS_PER_MINUTE))


def _to_seconds(span: Duration) -> Long:
    return Long(_truncating_div(span.millis, MILLIS_PER_SECOND))


def _to_milliseconds(span: Duration) -> Long:
    return Long(span.millis)


EXTENSION = Extension(
    name=EXTENSION_NAME,
    functions=(
        ExtensionFunction("datetime", (String,), _datetime, is_constructor=True),
        ExtensionFunction("duration", (String,), _duration, is_constructor=True),
        ExtensionFunction("offset", (Datetime, Duration), _offset),
        ExtensionFunction("durationSince", (Datetime, Datetime), _duration_since),
        ExtensionFunction("toDate", (Datetime,), _to_date),
        ExtensionFunction("toTime", (Datetime,), _to_time),
        ExtensionFunction("toDays", (Duration,), _to_days),
        ExtensionFunction("toHours", (Duration,), _to_hours),
        ExtensionFunction("toMinutes", (Duration,), _to_minutes),
        ExtensionFunction("toSeconds", (Duration,), _to_seconds),
        ExtensionFunction("toMilliseconds", (Duration,), _to_milliseconds),
    ),
)

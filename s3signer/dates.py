# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Current GMT time and the date strings used in request signing.

The v2 scheme only needs the RFC 2822 form for the ``Date`` header. The
two compact ISO 8601 forms are kept for the region-scoped schemes that
share this module.

Formatting does not go through ``strftime`` so that day and month names
are always English, whatever the process locale is.
"""

import time
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum


_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTH_NAMES = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


class DateFormat(Enum):
    """Date string patterns understood by S3-compatible servers."""

    RFC_2822 = "EEE, d MMM yyyy HH:mm:ss 'GMT'"
    ISO_8601_FULL = "yyyyMMdd'T'HHmmss'Z'"
    ISO_8601_SHORT = "yyyyMMdd"


def _rfc2822(date: datetime) -> str:
    return (
        f"{_DAY_NAMES[date.weekday()]}, {date.day} "
        f"{_MONTH_NAMES[date.month - 1]} {date.year:04d} "
        f"{date.hour:02d}:{date.minute:02d}:{date.second:02d} GMT"
    )


def _iso8601_full(date: datetime) -> str:
    return (
        f"{date.year:04d}{date.month:02d}{date.day:02d}T"
        f"{date.hour:02d}{date.minute:02d}{date.second:02d}Z"
    )


def _iso8601_short(date: datetime) -> str:
    return f"{date.year:04d}{date.month:02d}{date.day:02d}"


_FORMATTERS: dict[DateFormat, Callable[[datetime], str]] = {
    DateFormat.RFC_2822: _rfc2822,
    DateFormat.ISO_8601_FULL: _iso8601_full,
    DateFormat.ISO_8601_SHORT: _iso8601_short,
}


def local_raw_offset() -> timedelta:
    """Standard-time offset of the local timezone from UTC (DST ignored)."""
    return timedelta(seconds=-time.timezone)


def gmt0_now(
    clock: Callable[[], datetime] = datetime.now,
    raw_offset: timedelta | None = None,
) -> datetime:
    """Return the current time shifted to GMT.

    The local wall-clock reading has the local timezone's raw offset
    subtracted from it. The result is a naive datetime.

    Args:
        clock: Source of the local wall-clock time.
        raw_offset: Offset to subtract. Defaults to the local timezone's
            standard-time offset.

    Returns:
        Naive datetime holding the GMT wall-clock time.
    """
    if raw_offset is None:
        raw_offset = local_raw_offset()
    return clock() - raw_offset


def format_date(date: datetime, fmt: DateFormat) -> str:
    """Render *date* in the given pattern."""
    return _FORMATTERS[fmt](date)


def to_rfc2822_string(date: datetime) -> str:
    """E.g. ``Sun, 12 Mar 2023 00:00:00 GMT``."""
    return format_date(date, DateFormat.RFC_2822)


def to_iso8601_full_string(date: datetime) -> str:
    """E.g. ``20230312T000000Z``."""
    return format_date(date, DateFormat.ISO_8601_FULL)


def to_iso8601_short_string(date: datetime) -> str:
    """E.g. ``20230312``."""
    return format_date(date, DateFormat.ISO_8601_SHORT)

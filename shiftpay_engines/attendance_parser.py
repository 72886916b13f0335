"""
Attendance Text Parser (``shiftpay_engines.attendance_parser``).

Responsibility
--------------
Turns text pasted from an external timekeeping export into
``AttendanceRecord`` values.  Two export layouts are understood:

* **POS export** -- ``date, start "YYYY-MM-DD HH:MM:SS", end, ...`` with the
  reported total as ``H:MM`` somewhere in columns 4-11.  The total is gross
  elapsed time; the break has not been taken off yet.
* **Spreadsheet export** -- ``YYYY-MM-DD, weekday, ..., HH:MM, HH:MM, ...``
  with the worked hours already net of the break.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.

Invariants enforced
-------------------
* The layout is decided per line; there is no global mode.
* Each layout is an independent attempt function returning a record or
  ``None``.  A line yields one complete record or nothing.
* ``parse_attendance_text`` is a pure function of its input.

Failure modes
-------------
* Never raises on bad input: blank lines, header rows, day-off rows and
  anything unrecognised are dropped.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from shiftpay_engines.tracer import traced_engine
from shiftpay_kernel.domain.values import ZERO, hm_to_hours
from shiftpay_kernel.logging_config import get_logger
from shiftpay_modules.worktime.models import AttendanceRecord

logger = get_logger("engines.attendance_parser")

MIN_POS_COLUMNS = 8

# Column 6 first, then 4-5, then 7-11.
_POS_TOTAL_COLUMNS = (6, 4, 5, 7, 8, 9, 10, 11)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIMESTAMP_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_DURATION_RE = re.compile(r"^(\d+):(\d{2})$")
_CLOCK_RE = re.compile(r"^\d{1,2}:\d{2}(?::\d{2})?$")
_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
_WIDE_SPACES = re.compile(r" {3,}")

AttemptParser = Callable[[Sequence[str]], AttendanceRecord | None]


def split_columns(line: str) -> list[str]:
    """Split on tabs; lines without a tab split on runs of 3+ spaces."""
    line = line.rstrip("\r\n")
    if "\t" in line:
        parts = line.split("\t")
    else:
        parts = _WIDE_SPACES.split(line.strip())
    return [p.strip() for p in parts]


def _parse_duration(value: str) -> Decimal | None:
    """ "3:11" -> 3 + 11/60; anything else -> None."""
    match = _DURATION_RE.match(value)
    if match is None:
        return None
    return hm_to_hours(int(match.group(1)), int(match.group(2)))


def _parse_number(value: str) -> Decimal | None:
    if not _NUMBER_RE.match(value):
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        return None


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_timestamp(value: str) -> datetime | None:
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        return None
    day = _parse_date(match.group(1))
    if day is None:
        return None
    hour, minute, second = int(match.group(2)), int(match.group(3)), int(match.group(4) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return datetime(day.year, day.month, day.day, hour, minute, second)


# ---------------------------------------------------------------------------
# Spreadsheet layout
# ---------------------------------------------------------------------------


def _spreadsheet_net_hours(columns: Sequence[str]) -> Decimal | None:
    if len(columns) > 7:
        value = columns[7]
    else:
        # Short rows end at the hours column
        trailing = [v for v in columns[5:] if v]
        if not trailing:
            return None
        value = trailing[-1]
    hours = _parse_number(value)
    if hours is None:
        hours = _parse_duration(value)
    return hours


def parse_spreadsheet_line(columns: Sequence[str]) -> AttendanceRecord | None:
    """
    Attempt the spreadsheet layout.

    Detected when column 0 is exactly ``YYYY-MM-DD`` and column 1 holds no
    ``:``.  A blank start or end clock marks a day-off row and yields None.
    """
    if len(columns) < 5:
        return None
    if not _DATE_RE.match(columns[0]) or ":" in columns[1]:
        return None

    start, end = columns[3], columns[4]
    if not start or not end:
        return None
    if not _CLOCK_RE.match(start) or not _CLOCK_RE.match(end):
        return None

    work_date = _parse_date(columns[0])
    hours = _spreadsheet_net_hours(columns)
    if work_date is None or hours is None:
        return None

    return AttendanceRecord(
        work_date=work_date,
        start_time=start,
        end_time=end,
        total_hours=hours,
        is_pre_netted=True,
    )


# ---------------------------------------------------------------------------
# POS layout
# ---------------------------------------------------------------------------


def _pos_reported_total(columns: Sequence[str]) -> Decimal | None:
    for index in _POS_TOTAL_COLUMNS:
        if index >= len(columns):
            continue
        hours = _parse_duration(columns[index])
        if hours is None:
            continue
        if index == 6 and hours == ZERO:
            continue
        return hours
    return None


def parse_pos_line(columns: Sequence[str]) -> AttendanceRecord | None:
    """
    Attempt the POS layout.

    Needs at least 8 columns with full timestamps in columns 1 and 2.  When
    no ``H:MM`` total is reported the elapsed time between the timestamps is
    used.
    """
    if len(columns) < MIN_POS_COLUMNS:
        return None

    started = _parse_timestamp(columns[1])
    ended = _parse_timestamp(columns[2])
    if started is None or ended is None:
        return None

    hours = _pos_reported_total(columns)
    if hours is None:
        elapsed = Decimal(int((ended - started).total_seconds())) / Decimal(3600)
        hours = max(ZERO, elapsed)

    return AttendanceRecord(
        work_date=started.date(),
        start_time=columns[1],
        end_time=columns[2],
        total_hours=hours,
        is_pre_netted=False,
    )


# Order matters: a spreadsheet row never has a timestamp in column 1,
# so it cannot be mistaken for a POS row and vice versa.
_ATTEMPTS: tuple[AttemptParser, ...] = (parse_spreadsheet_line, parse_pos_line)


def parse_attendance_line(line: str) -> AttendanceRecord | None:
    """Parse one line with the first layout that accepts it."""
    if not line.strip():
        return None
    columns = split_columns(line)
    for attempt in _ATTEMPTS:
        record = attempt(columns)
        if record is not None:
            return record
    return None


@traced_engine("attendance_parser", "1.0", fingerprint_fields=("text",))
def parse_attendance_text(text: str) -> list[AttendanceRecord]:
    """
    Parse pasted export text into attendance records, in input order.

    Preconditions:
        - ``text`` is the raw paste; blank and unrecognised lines are fine.
    Postconditions:
        - Returns a new list; identical input yields an identical list.
    """
    records: list[AttendanceRecord] = []
    skipped = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        record = parse_attendance_line(line)
        if record is None:
            skipped += 1
            continue
        records.append(record)

    logger.debug(
        "attendance_text_parsed",
        extra={"record_count": len(records), "skipped_lines": skipped},
    )
    return records

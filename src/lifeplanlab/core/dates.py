"""
Date and day-index utilities for LifePlanLab.

Every date in a plan is stored as a ``YYYY-MM-DD`` string and every position
on the timeline is an integer number of days since the plan's birth date.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from .errors import InvalidDateString

logger = logging.getLogger(__name__)

# Only for frequency approximations, never for date display
DAYS_PER_YEAR = 365.25

_INTERVAL_DAYS = {
    "day": 1.0,
    "week": 7.0,
    "month": DAYS_PER_YEAR / 12,
    "quarter": DAYS_PER_YEAR / 4,
    "half_year": DAYS_PER_YEAR / 2,
    "year": DAYS_PER_YEAR,
}


def parse_date(value: str | date | datetime) -> date:
    """
    Parse a calendar date.

    Accepts ``date`` and ``datetime`` instances (time of day is dropped) and ISO
    ``YYYY-MM-DD`` strings. A string carrying a time component is accepted only
    if it is a full ISO timestamp; the calendar part is kept as-is, no timezone
    shifting is applied.

    Args:
        value: The value to parse

    Returns:
        The calendar date

    Raises:
        InvalidDateString: If the value is not a recognizable calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateString(value)
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text).date()
    except ValueError as exc:
        raise InvalidDateString(value) from exc


def try_parse_date(value) -> date | None:
    """Parse a calendar date, returning ``None`` instead of raising."""
    try:
        return parse_date(value)
    except InvalidDateString:
        logger.debug("Ignoring malformed date value %r", value)
        return None


def format_date(value: date) -> str:
    """Format a date as ``YYYY-MM-DD``."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def date_string_to_days_since_birth(
    date_string: str | date, birth_date: str | date
) -> int | None:
    """
    Convert a calendar date into a day offset from the birth date.

    Both inputs are plain calendar dates, so the difference is always a whole
    number of days and no daylight-saving correction is needed.

    Args:
        date_string: The date to convert (ISO string or ``date``)
        birth_date: The plan's birth date (ISO string or ``date``)

    Returns:
        Signed number of days from ``birth_date`` to ``date_string``, or ``None``
        if either input is malformed.

    Example:
        ```python
        date_string_to_days_since_birth("1990-01-11", "1990-01-01")  # 10
        date_string_to_days_since_birth("1989-12-31", "1990-01-01")  # -1
        ```
    """
    target = try_parse_date(date_string)
    birth = try_parse_date(birth_date)
    if target is None or birth is None:
        return None
    return (target - birth).days


def days_since_birth_to_date_string(days: int, birth_date: str | date) -> str:
    """
    Convert a day offset from the birth date into a ``YYYY-MM-DD`` string.

    Inverse of :func:`date_string_to_days_since_birth` for every integer
    ``days``. Fractional offsets are rounded to the nearest whole day.

    Args:
        days: Day offset, negative values address dates before birth
        birth_date: The plan's birth date

    Returns:
        The calendar date string

    Raises:
        InvalidDateString: If ``birth_date`` is malformed
    """
    birth = parse_date(birth_date)
    return format_date(birth + timedelta(days=int(round(days))))


def today_days_since_birth(birth_date: str | date, today: str | date) -> int:
    """Day index of ``today`` relative to the birth date."""
    return (parse_date(today) - parse_date(birth_date)).days


def completed_years(birth: date, target: date) -> int:
    """Whole years from ``birth`` to ``target`` by calendar subtraction; may be negative."""
    years = target.year - birth.year
    if (target.month, target.day) < (birth.month, birth.day):
        years -= 1
    return years


def get_age_from_date_strings(birth_date: str | date, target: str | date) -> int | None:
    """
    Age in completed years on ``target``.

    Returns ``None`` when either date is malformed.
    """
    birth = try_parse_date(birth_date)
    on = try_parse_date(target)
    if birth is None or on is None:
        return None
    return completed_years(birth, on)


def get_age_from_days(days: int, birth_date: str | date) -> int:
    """Age in completed years at the given day offset."""
    birth = parse_date(birth_date)
    return completed_years(birth, birth + timedelta(days=int(round(days))))


def _birthday_in_year(birth: date, year: int) -> date:
    try:
        return birth.replace(year=year)
    except ValueError:
        # Feb 29 birthday in a non-leap year is reached on Mar 1
        return date(year, 3, 1)


def get_days_from_age(age: int, birth_date: str | date) -> int:
    """
    Day offset of the birthday on which the given age is reached.

    ``get_age_from_days(get_days_from_age(n, b), b) == n`` for every age ``n``.
    """
    birth = parse_date(birth_date)
    return (_birthday_in_year(birth, birth.year + int(age)) - birth).days


def frequency_days_for(interval: str) -> float:
    """
    Approximate length of a recurrence interval in days.

    Args:
        interval: One of ``day``, ``week``, ``month``, ``quarter``, ``half_year``,
            ``year``

    Raises:
        ValueError: For an unknown interval name
    """
    try:
        return _INTERVAL_DAYS[interval]
    except KeyError:
        raise ValueError(
            f"Unknown interval '{interval}', expected one of {sorted(_INTERVAL_DAYS)}"
        ) from None

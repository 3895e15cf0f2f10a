"""
Age Derivation

Computes employee age in whole completed years. The cleaner stores the result
as a snapshot taken against the processing date; it is not refreshed when the
reports run later. Use live_age() where the current age matters.
"""

import logging
from datetime import date
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


DateLike = Union[date, str]


def _as_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def years_between(start: DateLike, end: DateLike) -> int:
    """
    Count completed anniversaries of `start` on or before `end`.

    Args:
        start: Earlier date (date or 'YYYY-MM-DD')
        end: Later date (date or 'YYYY-MM-DD')

    Returns:
        Whole years; negative if end precedes start

    Examples:
        >>> years_between('2000-06-15', '2023-06-14')
        22
        >>> years_between('2000-06-15', '2023-06-15')
        23
    """
    start_date = _as_date(start)
    end_date = _as_date(end)

    years = end_date.year - start_date.year
    # Anniversary not reached yet this year
    if (end_date.month, end_date.day) < (start_date.month, start_date.day):
        years -= 1
    return years


def derive_age(birthdate: Optional[date], as_of: date) -> Optional[int]:
    """
    Derive age from a normalized birthdate.

    Args:
        birthdate: Normalized birthdate or None if it was unparseable
        as_of: Reference date of the cleaning run

    Returns:
        Age in whole years, or None if the birthdate is missing or lies after as_of
    """
    if birthdate is None:
        return None

    age = years_between(birthdate, as_of)
    if age < 0:
        logger.warning(
            "Birthdate is after the as-of date, leaving age empty",
            extra={'birthdate': birthdate.isoformat(), 'as_of': as_of.isoformat()}
        )
        return None

    return age


def live_age(record: dict[str, Any], today: Optional[date] = None) -> Optional[int]:
    """Age of a clean record as of today, ignoring the stored snapshot."""
    return derive_age(record.get('birthdate'), today or date.today())

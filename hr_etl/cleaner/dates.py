"""
Employee Date Normalization

This module converts the free-form date strings found in the employee flat
file into calendar dates. Each date column has its own source convention:

- birthdate, hire_date: month-day-year with either '/' or '-' as separator
  (e.g. "03/15/1990" or "03-15-1990")
- termdate: either blank (still employed) or a UTC timestamp
  (e.g. "2019-06-30 00:00:00 UTC")

For birthdate/hire_date the separator decides the format and no other
layouts are attempted.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)


DATE_FIELDS = ('birthdate', 'hire_date')
TERMDATE_FIELD = 'termdate'

SLASH_DATE_FORMAT = '%m/%d/%Y'
DASH_DATE_FORMAT = '%m-%d-%Y'
TERMDATE_FORMAT = '%Y-%m-%d %H:%M:%S UTC'

# Textual rendering of "not terminated" in CSV artifacts and logs
NOT_TERMINATED_SENTINEL = '0000-00-00'

TERM_ACTIVE = 'active'
TERM_TERMINATED = 'terminated'
TERM_UNKNOWN = 'unknown'
VALID_TERM_STATUSES = {TERM_ACTIVE, TERM_TERMINATED, TERM_UNKNOWN}


class NormalizationError(Exception):
    """Raised when an employee field cannot be normalized."""
    pass


class MalformedDateError(NormalizationError):
    """Raised when a non-blank termdate does not match the UTC timestamp shape."""
    pass


@dataclass(frozen=True)
class TermDate:
    """
    Termination state of an employee.

    One of three variants:
    - active: not terminated (blank source value)
    - terminated: terminated on `value`
    - unknown: the source value was present but malformed

    `value` is only set for the terminated variant, so the "not terminated"
    state can never leak into duration calculations.
    """

    status: str
    value: Optional[date] = None

    def __post_init__(self) -> None:
        if self.status not in VALID_TERM_STATUSES:
            raise ValueError(f"Invalid term status: {self.status!r}")
        if (self.status == TERM_TERMINATED) != (self.value is not None):
            raise ValueError("Only the terminated variant carries a date")

    @classmethod
    def active(cls) -> "TermDate":
        return cls(TERM_ACTIVE)

    @classmethod
    def terminated(cls, on: date) -> "TermDate":
        return cls(TERM_TERMINATED, on)

    @classmethod
    def unknown(cls) -> "TermDate":
        return cls(TERM_UNKNOWN)

    @property
    def is_active(self) -> bool:
        return self.status == TERM_ACTIVE

    @property
    def is_terminated(self) -> bool:
        return self.status == TERM_TERMINATED

    def terminated_by(self, as_of: date) -> bool:
        """Return True if terminated on or before `as_of`."""
        return self.is_terminated and self.value <= as_of

    def isoformat(self) -> Optional[str]:
        """
        Render for text outputs.

        Returns:
            'YYYY-MM-DD' when terminated, the '0000-00-00' sentinel when
            active, None when unknown
        """
        if self.is_terminated:
            return self.value.isoformat()
        if self.is_active:
            return NOT_TERMINATED_SENTINEL
        return None

    @classmethod
    def from_storage(cls, status: str, value: Optional[date]) -> "TermDate":
        """Rebuild from the (term_status, termdate) column pair."""
        if status == TERM_TERMINATED:
            return cls.terminated(value)
        if status == TERM_ACTIVE:
            return cls.active()
        return cls.unknown()


def normalize_date(value: Any, field_name: str) -> Optional[date]:
    """
    Normalize a birthdate or hire_date string.

    The separator present in the raw string picks the format:
    '/' means MM/DD/YYYY, '-' means MM-DD-YYYY. Anything else, including
    impossible calendar dates and two-digit years, is unrepresentable.

    Args:
        value: Raw value from the flat file
        field_name: Column name (for logging)

    Returns:
        date object or None if blank/unparseable

    Examples:
        >>> normalize_date('03/15/1990', 'birthdate')
        datetime.date(1990, 3, 15)
        >>> normalize_date('03-15-1990', 'birthdate')
        datetime.date(1990, 3, 15)
        >>> normalize_date('1990.03.15', 'birthdate') is None
        True
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        logger.warning(
            f"{field_name} must be string, got {type(value).__name__}",
            extra={'value': value}
        )
        return None

    cleaned = value.strip()
    if not cleaned:
        return None

    if '/' in cleaned:
        fmt = SLASH_DATE_FORMAT
    elif '-' in cleaned:
        fmt = DASH_DATE_FORMAT
    else:
        logger.warning(
            f"Unrecognized {field_name} format",
            extra={'value': value}
        )
        return None

    try:
        return datetime.strptime(cleaned, fmt).date()
    except ValueError:
        logger.warning(
            f"Failed to parse {field_name}",
            extra={'value': value, 'format': fmt}
        )
        return None


def normalize_termdate(value: Any) -> TermDate:
    """
    Normalize a termdate string.

    Args:
        value: Raw termdate value

    Returns:
        TermDate.active() for None/blank/whitespace, otherwise
        TermDate.terminated() with the date part of the timestamp

    Raises:
        MalformedDateError: If a non-blank value is not 'YYYY-MM-DD HH:MM:SS UTC'

    Examples:
        >>> normalize_termdate('   ').isoformat()
        '0000-00-00'
        >>> normalize_termdate('2019-06-30 00:00:00 UTC').isoformat()
        '2019-06-30'
    """
    if value is None:
        return TermDate.active()

    if isinstance(value, TermDate):
        return value

    if not isinstance(value, str):
        raise MalformedDateError(
            f"termdate must be string, got {type(value).__name__}"
        )

    cleaned = value.strip()
    if not cleaned:
        return TermDate.active()

    try:
        parsed = datetime.strptime(cleaned, TERMDATE_FORMAT)
    except ValueError as e:
        raise MalformedDateError(f"Malformed termdate {value!r}: {e}") from e

    return TermDate.terminated(parsed.date())


def normalize_field(value: Any, field_name: str):
    """
    Normalize a raw value according to its field role.

    Raises:
        ValueError: If field_name is not a date column
        MalformedDateError: See normalize_termdate
    """
    if field_name in DATE_FIELDS:
        return normalize_date(value, field_name)
    if field_name == TERMDATE_FIELD:
        return normalize_termdate(value)
    raise ValueError(f"Not a date field: {field_name!r}")

"""
Employee Cleaning Pipeline

Turns a snapshot of raw employee rows into a new list of clean records.
The raw rows are never modified.

Stages (each runs over the whole snapshot before the next one starts):
1. normalize_dates_stage: birthdate, hire_date, termdate
2. derive_ages_stage: age from the normalized birthdate

Problems are resolved per row: unparseable dates become None, a malformed
termdate becomes TermDate.unknown(). No row is dropped for a bad value; only
rows without an emp_id are skipped.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from hr_etl.common.columns import ID_COLUMN, PASSTHROUGH_COLUMNS

from .age import derive_age
from .dates import MalformedDateError, TermDate, normalize_date, normalize_termdate

logger = logging.getLogger(__name__)


DEFAULT_MIN_AGE = 18


@dataclass
class CleaningResult:
    """Clean records plus counters describing the run."""

    records: list[dict[str, Any]]
    as_of: date
    stats: dict[str, int] = field(default_factory=dict)


def _new_stats() -> dict[str, int]:
    return {
        'total': 0,
        'cleaned': 0,
        'skipped': 0,
        'invalid_birthdate': 0,
        'invalid_hire_date': 0,
        'malformed_termdate': 0,
        'active': 0,
        'terminated': 0,
        'missing_age': 0,
        'under_min_age': 0,
    }


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_record_dates(raw: Mapping[str, Any], stats: dict[str, int]) -> dict[str, Any]:
    """
    Build the date-normalized copy of one raw row.

    Args:
        raw: Raw employee row (text values)
        stats: Counters updated in place

    Returns:
        New record with birthdate/hire_date as date|None and termdate as TermDate
    """
    emp_id = str(raw[ID_COLUMN]).strip()
    record: dict[str, Any] = {ID_COLUMN: emp_id}

    for column in PASSTHROUGH_COLUMNS:
        value = raw.get(column)
        record[column] = value.strip() if isinstance(value, str) else value

    record['birthdate'] = normalize_date(raw.get('birthdate'), 'birthdate')
    if record['birthdate'] is None and not _blank(raw.get('birthdate')):
        stats['invalid_birthdate'] += 1

    record['hire_date'] = normalize_date(raw.get('hire_date'), 'hire_date')
    if record['hire_date'] is None and not _blank(raw.get('hire_date')):
        stats['invalid_hire_date'] += 1

    try:
        record['termdate'] = normalize_termdate(raw.get('termdate'))
    except MalformedDateError as e:
        stats['malformed_termdate'] += 1
        logger.warning(
            "Malformed termdate, marking termination state unknown",
            extra={'emp_id': emp_id, 'error': str(e)}
        )
        record['termdate'] = TermDate.unknown()

    if record['termdate'].is_active:
        stats['active'] += 1
    elif record['termdate'].is_terminated:
        stats['terminated'] += 1

    return record


def normalize_dates_stage(
    raw_records: Iterable[Mapping[str, Any]],
    stats: dict[str, int]
) -> list[dict[str, Any]]:
    """Normalize the date columns of every raw row."""
    normalized = []

    for raw in raw_records:
        stats['total'] += 1

        if _blank(raw.get(ID_COLUMN)):
            stats['skipped'] += 1
            logger.warning(
                "Skipping employee row without emp_id",
                extra={'raw_keys': list(raw.keys())}
            )
            continue

        normalized.append(normalize_record_dates(raw, stats))

    logger.debug(
        "Date normalization stage completed",
        extra={'records': len(normalized)}
    )
    return normalized


def derive_ages_stage(
    records: Iterable[dict[str, Any]],
    as_of: date,
    stats: dict[str, int],
    min_age: int = DEFAULT_MIN_AGE
) -> list[dict[str, Any]]:
    """Attach the age snapshot to every normalized record."""
    aged = []

    for record in records:
        age = derive_age(record['birthdate'], as_of)

        if age is None:
            stats['missing_age'] += 1
        elif age < min_age:
            stats['under_min_age'] += 1

        aged.append({**record, 'age': age, 'aged_as_of': as_of})

    return aged


def clean_records(
    raw_records: Iterable[Mapping[str, Any]],
    as_of: Optional[date] = None,
    min_age: int = DEFAULT_MIN_AGE
) -> CleaningResult:
    """
    Run the full cleaning pipeline.

    Args:
        raw_records: Raw employee rows as read from the flat file or raw table
        as_of: Reference date for age; defaults to today, fixed for the whole run
        min_age: Age under which records are counted in 'under_min_age'

    Returns:
        CleaningResult with the new records, the as-of date and counters

    Example:
        >>> result = clean_records(
        ...     [{'emp_id': '1', 'birthdate': '01/01/2000', 'hire_date': '01-01-2020', 'termdate': ''}],
        ...     as_of=date(2024, 1, 1),
        ... )
        >>> result.records[0]['age']
        24
    """
    as_of = as_of or date.today()
    stats = _new_stats()

    logger.info(
        "Starting employee cleaning pipeline",
        extra={'as_of': as_of.isoformat()}
    )

    normalized = normalize_dates_stage(raw_records, stats)
    cleaned = derive_ages_stage(normalized, as_of, stats, min_age=min_age)
    stats['cleaned'] = len(cleaned)

    logger.info(
        "Employee cleaning pipeline completed",
        extra={'stats': stats}
    )

    return CleaningResult(records=cleaned, as_of=as_of, stats=stats)

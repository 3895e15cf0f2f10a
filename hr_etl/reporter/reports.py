"""
Workforce Reports

Each report is a pure aggregate over clean employee records and returns a
list of row dictionaries, ready to print or write as CSV.

Two population filters are shared by the reports:

- current workforce: age known and >= min_age, and termdate is active
- terminated: age known and >= min_age, and terminated on or before as_of

Turnover and headcount trend count every adult employee and mark the
terminated ones. Averages and percentages are rounded half-up, and every
ratio whose denominator can be zero yields None instead.
"""

import logging
from collections import Counter, defaultdict
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

from .config_loader import ReportConfig

logger = logging.getLogger(__name__)


Record = dict[str, Any]
Row = dict[str, Any]

REPORT_COLUMNS: dict[str, tuple[str, ...]] = {
    'gender_breakdown': ('gender', 'count'),
    'race_breakdown': ('race', 'count'),
    'age_range': ('youngest', 'oldest'),
    'age_distribution': ('age_group', 'gender', 'count'),
    'location_breakdown': ('location', 'count'),
    'average_tenure': ('avg_length_employment',),
    'gender_by_department': ('department', 'gender', 'count'),
    'jobtitle_distribution': ('jobtitle', 'count'),
    'turnover_by_department': ('department', 'total_count', 'terminated_count', 'termination_rate'),
    'state_distribution': ('location_state', 'count'),
    'headcount_trend': ('years', 'hires', 'terminations', 'net_change', 'net_change_percent'),
    'tenure_by_department': ('department', 'avg_tenure'),
    'age_extremes_all': ('youngest', 'oldest'),
    'count_under_min_age': ('min_age', 'count'),
}

# Run order
REPORT_NAMES = tuple(REPORT_COLUMNS)


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """
    Round like SQL ROUND(): halves go away from zero.

    Examples:
        >>> round_half_up(10.5)
        11
        >>> round_half_up(2.675, 2)
        2.68
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if digits == 0:
        return int(rounded)
    return float(rounded)


def _sort_key(value: Any) -> tuple[bool, Any]:
    # None sorts last
    return (value is None, value if value is not None else '')


def _is_adult(record: Record, config: ReportConfig) -> bool:
    age = record.get('age')
    return age is not None and age >= config.min_age


def current_workforce(records: Iterable[Record], config: ReportConfig) -> list[Record]:
    """Adult employees who are not terminated."""
    return [r for r in records if _is_adult(r, config) and r['termdate'].is_active]


def terminated_employees(records: Iterable[Record], config: ReportConfig, as_of: date) -> list[Record]:
    """Adult employees terminated on or before as_of."""
    return [r for r in records if _is_adult(r, config) and r['termdate'].terminated_by(as_of)]


def tenure_days(record: Record) -> Optional[int]:
    """Days between hire and termination; None if either date is missing."""
    termdate = record['termdate']
    if not termdate.is_terminated or record.get('hire_date') is None:
        return None
    return (termdate.value - record['hire_date']).days


def _count_by(
    records: Iterable[Record],
    columns: Sequence[str],
) -> Counter:
    return Counter(tuple(r.get(column) for column in columns) for r in records)


def _count_rows(counts: Counter, columns: Sequence[str]) -> list[Row]:
    return [
        {**dict(zip(columns, key)), 'count': count}
        for key, count in counts.items()
    ]


def _by_count_desc(rows: list[Row], column: str) -> list[Row]:
    return sorted(rows, key=lambda row: (-row['count'], _sort_key(row[column])))


# ----------------------------------------------------------------------------
# Composition reports (current workforce)
# ----------------------------------------------------------------------------

def gender_breakdown(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Count of current employees by gender."""
    rows = _count_rows(_count_by(current_workforce(records, config), ['gender']), ['gender'])
    return sorted(rows, key=lambda row: _sort_key(row['gender']))


def race_breakdown(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Count of current employees by race, largest group first."""
    rows = _count_rows(_count_by(current_workforce(records, config), ['race']), ['race'])
    return _by_count_desc(rows, 'race')


def age_range(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Youngest and oldest current employee."""
    ages = [r['age'] for r in current_workforce(records, config)]
    return [{
        'youngest': min(ages) if ages else None,
        'oldest': max(ages) if ages else None,
    }]


def age_distribution(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Count of current employees by (age band, gender), in band order."""
    counts: Counter = Counter()

    for record in current_workforce(records, config):
        band = config.band_for(record['age'])
        if band is None:
            logger.debug(
                "Age outside configured bands",
                extra={'emp_id': record.get('emp_id'), 'age': record['age']}
            )
            continue
        counts[(band, record.get('gender'))] += 1

    band_order = {band.label: index for index, band in enumerate(config.age_bands)}
    rows = _count_rows(counts, ['age_group', 'gender'])
    return sorted(rows, key=lambda row: (band_order[row['age_group']], _sort_key(row['gender'])))


def location_breakdown(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Count of current employees by location (headquarters vs remote)."""
    rows = _count_rows(_count_by(current_workforce(records, config), ['location']), ['location'])
    return sorted(rows, key=lambda row: _sort_key(row['location']))


def gender_by_department(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Count of current employees by (department, gender)."""
    columns = ['department', 'gender']
    rows = _count_rows(_count_by(current_workforce(records, config), columns), columns)
    return sorted(rows, key=lambda row: (_sort_key(row['department']), _sort_key(row['gender'])))


def jobtitle_distribution(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Count of current employees by job title, alphabetical."""
    rows = _count_rows(_count_by(current_workforce(records, config), ['jobtitle']), ['jobtitle'])
    return sorted(rows, key=lambda row: _sort_key(row['jobtitle']))


def state_distribution(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Count of current employees by location_state, largest first."""
    rows = _count_rows(
        _count_by(current_workforce(records, config), ['location_state']),
        ['location_state'],
    )
    return _by_count_desc(rows, 'location_state')


# ----------------------------------------------------------------------------
# Turnover and tenure reports
# ----------------------------------------------------------------------------

def average_tenure(records: Iterable[Record], config: ReportConfig, as_of: date) -> list[Row]:
    """
    Average length of employment of terminated employees, in whole years.

    Employees without a hire date are left out of the average.
    """
    days = [
        d for d in (tenure_days(r) for r in terminated_employees(records, config, as_of))
        if d is not None
    ]
    if not days:
        return [{'avg_length_employment': None}]

    mean_days = sum(days) / len(days)
    return [{'avg_length_employment': round_half_up(mean_days / config.days_per_year)}]


def turnover_rate(total_count: int, terminated_count: int) -> Optional[float]:
    """terminated/total, or None when there is nobody to divide by."""
    if total_count == 0:
        return None
    return terminated_count / total_count


def turnover_by_department(records: Iterable[Record], config: ReportConfig, as_of: date) -> list[Row]:
    """Termination rate per department, highest first."""
    totals: Counter = Counter()
    terminated: Counter = Counter()

    for record in records:
        if not _is_adult(record, config):
            continue
        department = record.get('department')
        totals[department] += 1
        if record['termdate'].terminated_by(as_of):
            terminated[department] += 1

    rows = [
        {
            'department': department,
            'total_count': total,
            'terminated_count': terminated[department],
            'termination_rate': turnover_rate(total, terminated[department]),
        }
        for department, total in totals.items()
    ]

    def order(row: Row) -> tuple:
        rate = row['termination_rate']
        return (rate is None, -(rate or 0.0), _sort_key(row['department']))

    return sorted(rows, key=order)


def headcount_trend(records: Iterable[Record], config: ReportConfig, as_of: date) -> list[Row]:
    """
    Hires, terminations and net change per hire year.

    Terminations are attributed to the hire year of the employee.
    Employees without a hire date are left out.
    """
    hires: Counter = Counter()
    terminations: Counter = Counter()
    missing_hire_date = 0

    for record in records:
        if not _is_adult(record, config):
            continue
        hire_date = record.get('hire_date')
        if hire_date is None:
            missing_hire_date += 1
            continue
        hires[hire_date.year] += 1
        if record['termdate'].terminated_by(as_of):
            terminations[hire_date.year] += 1

    if missing_hire_date:
        logger.debug(
            "Employees without hire date left out of headcount trend",
            extra={'count': missing_hire_date}
        )

    rows = []
    for year in sorted(hires):
        net_change = hires[year] - terminations[year]
        rows.append({
            'years': year,
            'hires': hires[year],
            'terminations': terminations[year],
            'net_change': net_change,
            'net_change_percent': (
                round_half_up(net_change / hires[year] * 100, 2) if hires[year] else None
            ),
        })
    return rows


def tenure_by_department(records: Iterable[Record], config: ReportConfig, as_of: date) -> list[Row]:
    """Average tenure in whole years of terminated employees, per department."""
    days_by_department: defaultdict[Any, list[int]] = defaultdict(list)

    for record in terminated_employees(records, config, as_of):
        days = tenure_days(record)
        if days is not None:
            days_by_department[record.get('department')].append(days)

    rows = [
        {
            'department': department,
            'avg_tenure': round_half_up(sum(days) / len(days) / config.days_per_year),
        }
        for department, days in days_by_department.items()
    ]
    return sorted(rows, key=lambda row: _sort_key(row['department']))


# ----------------------------------------------------------------------------
# Data sanity checks (whole table)
# ----------------------------------------------------------------------------

def age_extremes_all(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Youngest and oldest age over every record with a known age."""
    ages = [r['age'] for r in records if r.get('age') is not None]
    return [{
        'youngest': min(ages) if ages else None,
        'oldest': max(ages) if ages else None,
    }]


def count_under_min_age(records: Iterable[Record], config: ReportConfig) -> list[Row]:
    """Number of records younger than min_age (excluded from all other reports)."""
    count = sum(1 for r in records if r.get('age') is not None and r['age'] < config.min_age)
    return [{'min_age': config.min_age, 'count': count}]


def run_all_reports(
    records: Iterable[Record],
    config: ReportConfig,
    as_of: Optional[date] = None,
    names: Optional[Sequence[str]] = None,
) -> dict[str, list[Row]]:
    """
    Run the selected reports over one snapshot of clean records.

    Args:
        records: Clean employee records
        config: Report configuration
        as_of: Cut-off for "terminated on or before"; defaults to config.as_of, then today
        names: Reports to run (default: all, in REPORT_NAMES order)

    Returns:
        Mapping of report name to its rows, in the requested order

    Raises:
        ValueError: If a report name is unknown
    """
    records = list(records)
    as_of = as_of or config.as_of or date.today()
    names = list(names) if names else list(REPORT_NAMES)

    unknown = [name for name in names if name not in REPORT_NAMES]
    if unknown:
        raise ValueError(f"Unknown reports: {', '.join(unknown)}")

    builders: dict[str, Callable[[], list[Row]]] = {
        'gender_breakdown': lambda: gender_breakdown(records, config),
        'race_breakdown': lambda: race_breakdown(records, config),
        'age_range': lambda: age_range(records, config),
        'age_distribution': lambda: age_distribution(records, config),
        'location_breakdown': lambda: location_breakdown(records, config),
        'average_tenure': lambda: average_tenure(records, config, as_of),
        'gender_by_department': lambda: gender_by_department(records, config),
        'jobtitle_distribution': lambda: jobtitle_distribution(records, config),
        'turnover_by_department': lambda: turnover_by_department(records, config, as_of),
        'state_distribution': lambda: state_distribution(records, config),
        'headcount_trend': lambda: headcount_trend(records, config, as_of),
        'tenure_by_department': lambda: tenure_by_department(records, config, as_of),
        'age_extremes_all': lambda: age_extremes_all(records, config),
        'count_under_min_age': lambda: count_under_min_age(records, config),
    }

    results = {}
    for name in names:
        results[name] = builders[name]()
        logger.debug(f"Report {name} produced {len(results[name])} rows")

    logger.info(
        "Reports completed",
        extra={'reports': names, 'records': len(records), 'as_of': as_of.isoformat()}
    )
    return results

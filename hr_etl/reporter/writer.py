"""
CSV artifact writer.

One CSV file per report plus an extract of the clean employee table. The
same tables go to Tableau through hyper_exporter. In the extract, an active
employee's termdate is written as the '0000-00-00' sentinel the dashboard
filters on.
"""

import csv
import logging
import os
from collections.abc import Iterable, Mapping
from datetime import date
from pathlib import Path
from typing import Any

from hr_etl.cleaner.dates import TermDate
from hr_etl.common.columns import RAW_COLUMNS

from .reports import REPORT_COLUMNS

logger = logging.getLogger(__name__)


EXTRACT_COLUMNS = RAW_COLUMNS + ('age', 'aged_as_of')


def render_value(value: Any) -> str:
    """Render one cell; None becomes an empty string."""
    if value is None:
        return ''
    if isinstance(value, TermDate):
        return value.isoformat() or ''
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def write_rows_csv(path: Path, rows: list[Mapping[str, Any]], columns: Iterable[str] = ()) -> Path:
    """
    Write rows to a CSV file with a header row.

    Columns default to the keys of the first row. An empty report still gets
    a file, with a header when columns are given.
    """
    columns = list(columns) or (list(rows[0].keys()) if rows else [])

    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        if columns:
            writer.writerow(columns)
        for row in rows:
            writer.writerow([render_value(row.get(column)) for column in columns])

    return path


def write_reports(
    reports: Mapping[str, list[Mapping[str, Any]]],
    output_dir: str = "artifacts",
) -> list[str]:
    """
    Write each report to <output_dir>/<report name>.csv.

    Known reports always get their header row, even when they have no rows.

    Returns:
        Paths of the written files
    """
    os.makedirs(output_dir, exist_ok=True)

    paths = []
    for name, rows in reports.items():
        path = write_rows_csv(Path(output_dir) / f"{name}.csv", rows, REPORT_COLUMNS.get(name, ()))
        paths.append(str(path))

    logger.info(
        "Report artifacts written",
        extra={'output_dir': output_dir, 'files': len(paths)}
    )
    return paths


def write_employee_extract(
    records: list[Mapping[str, Any]],
    output_dir: str = "artifacts",
    filename: str = "hr_employees_clean.csv",
) -> str:
    """Write the clean employee table for the BI dashboard."""
    os.makedirs(output_dir, exist_ok=True)
    path = write_rows_csv(Path(output_dir) / filename, records, EXTRACT_COLUMNS)

    logger.info(
        "Employee extract written",
        extra={'path': str(path), 'rows': len(records)}
    )
    return str(path)

"""
Tableau Hyper export.

Writes the report tables and the clean employee extract into one .hyper file
under the "Extract" schema, for the workforce dashboard.

Column types are fixed per column name, so an empty report keeps the same
schema as a populated one.
"""

import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from pathlib import Path
from typing import Any, Optional

from hr_etl.cleaner.dates import TermDate

from .reports import REPORT_COLUMNS
from .writer import EXTRACT_COLUMNS

logger = logging.getLogger(__name__)


EXTRACT_SCHEMA = "Extract"
EXTRACT_TABLE = "hr_employees_clean"

# Hyper SqlType factory per column; anything not listed is text
COLUMN_TYPES = {
    'age': 'big_int',
    'birthdate': 'date',
    'hire_date': 'date',
    'aged_as_of': 'date',
    'count': 'big_int',
    'youngest': 'big_int',
    'oldest': 'big_int',
    'min_age': 'big_int',
    'avg_length_employment': 'big_int',
    'avg_tenure': 'big_int',
    'total_count': 'big_int',
    'terminated_count': 'big_int',
    'termination_rate': 'double',
    'years': 'big_int',
    'hires': 'big_int',
    'terminations': 'big_int',
    'net_change': 'big_int',
    'net_change_percent': 'double',
}


def column_type(column: str) -> str:
    """Name of the SqlType factory used for `column`."""
    return COLUMN_TYPES.get(column, 'text')


def hyper_value(value: Any, column: str) -> Any:
    """
    Convert one cell for insertion.

    TermDate goes in as text ('0000-00-00' sentinel when active, NULL when
    unknown); dates stay dates in date columns and are rendered as ISO text
    elsewhere.
    """
    if value is None:
        return None
    if isinstance(value, TermDate):
        return value.isoformat()
    kind = column_type(column)
    if kind == 'date':
        return value
    if kind == 'double':
        return float(value)
    if kind == 'big_int':
        return int(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def hyper_rows(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> list[list[Any]]:
    """Rows as value lists in column order."""
    return [[hyper_value(row.get(column), column) for column in columns] for row in rows]


def hyper_tables(
    reports: Mapping[str, list[Mapping[str, Any]]],
    records: Optional[list[Mapping[str, Any]]] = None,
) -> list[tuple[str, Sequence[str], list[list[Any]]]]:
    """
    (table name, columns, rows) for every table of the export.

    Reports without a known column list take the keys of their first row.
    """
    tables = []
    for name, rows in reports.items():
        columns = REPORT_COLUMNS.get(name) or (tuple(rows[0].keys()) if rows else ())
        if not columns:
            logger.warning("Skipping report without columns", extra={'report': name})
            continue
        tables.append((name, columns, hyper_rows(rows, columns)))

    if records is not None:
        tables.append((EXTRACT_TABLE, EXTRACT_COLUMNS, hyper_rows(records, EXTRACT_COLUMNS)))

    return tables


def export_to_hyper(
    reports: Mapping[str, list[Mapping[str, Any]]],
    records: Optional[list[Mapping[str, Any]]] = None,
    output_dir: str = "artifacts",
    hyper_filename: str = "hr_workforce.hyper",
) -> str:
    """
    Export report tables (and optionally the employee extract) to a Tableau .hyper file.

    Notes:
    - Imports tableauhyperapi lazily at runtime, it is an optional extra.
    - Creates output directory if it doesn't exist.
    - Replaces an existing file of the same name.

    Returns the path to the created .hyper file.
    """
    try:
        from tableauhyperapi import (
            Connection,
            CreateMode,
            HyperProcess,
            Inserter,
            SqlType,
            TableDefinition,
            TableName,
            Telemetry,
        )
    except ImportError as err:
        raise RuntimeError(
            "tableauhyperapi is required to export .hyper files. Install with `pip install hr-etl[hyper]`."
        ) from err

    os.makedirs(output_dir, exist_ok=True)
    hyper_path = str(Path(output_dir) / hyper_filename)
    tables = hyper_tables(reports, records)

    with HyperProcess(Telemetry.DO_NOT_SEND_USAGE_DATA_TO_TABLEAU) as hyper:
        with Connection(
            endpoint=hyper.endpoint,
            database=hyper_path,
            create_mode=CreateMode.CREATE_AND_REPLACE,
        ) as connection:
            connection.catalog.create_schema_if_not_exists(EXTRACT_SCHEMA)

            for name, columns, rows in tables:
                table_def = TableDefinition(TableName(EXTRACT_SCHEMA, name))
                for column in columns:
                    sql_type = getattr(SqlType, column_type(column))()
                    table_def.add_column(TableDefinition.Column(column, sql_type))

                connection.catalog.create_table(table_def)

                if rows:
                    with Inserter(connection, table_def) as inserter:
                        inserter.add_rows(rows)
                        inserter.execute()

                logger.debug(
                    "Hyper table written",
                    extra={'table': name, 'rows': len(rows)}
                )

    logger.info(
        "Hyper export completed",
        extra={'hyper_path': hyper_path, 'tables': len(tables)}
    )
    return hyper_path

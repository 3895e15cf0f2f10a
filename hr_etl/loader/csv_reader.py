"""
Employee Flat File Reader

Reads the delimited employee export into raw row dictionaries.

The export has one header row. Its identifier column is named `id`, and
spreadsheet exports often prefix it with a UTF-8 byte-order mark, which
shows up as "ï»¿id" when the file is read with the wrong encoding. The
reader decodes with 'utf-8-sig' and renames the column to `emp_id`.
"""

import csv
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Union

from hr_etl.common.columns import ID_COLUMN, RAW_COLUMNS, REQUIRED_COLUMNS, SOURCE_ID_COLUMN

logger = logging.getLogger(__name__)


# Mis-decoded byte-order mark
_MOJIBAKE_BOM = '\u00ef\u00bb\u00bf'


class LoaderError(Exception):
    """Raised when the employee file cannot be read."""
    pass


def normalize_header(name: str) -> str:
    """
    Normalize a header cell to a raw column name.

    Examples:
        >>> normalize_header('\\ufeffid')
        'emp_id'
        >>> normalize_header(' Hire_Date ')
        'hire_date'
    """
    cleaned = name.replace('\ufeff', '').replace(_MOJIBAKE_BOM, '').strip().lower()
    if cleaned == SOURCE_ID_COLUMN:
        return ID_COLUMN
    return cleaned


def iter_employee_rows(
    path: Union[str, Path],
    delimiter: str = ','
) -> Iterator[dict[str, str]]:
    """
    Yield raw employee rows from a delimited file.

    Columns outside the raw layout are dropped; raw columns absent from the
    file are set to None. emp_id is stripped of surrounding whitespace, other
    values are kept as text exactly as found.

    Args:
        path: Path to the file
        delimiter: Field delimiter

    Yields:
        Dictionary per data row keyed by raw column name

    Raises:
        LoaderError: If the file is missing, empty or lacks a required column
    """
    try:
        handle = open(path, newline='', encoding='utf-8-sig')
    except OSError as e:
        raise LoaderError(f"Cannot open employee file {path}: {e}") from e

    with handle:
        reader = csv.reader(handle, delimiter=delimiter)

        try:
            header = next(reader)
        except StopIteration:
            raise LoaderError(f"Employee file {path} is empty") from None

        columns = [normalize_header(name) for name in header]
        missing = [column for column in REQUIRED_COLUMNS if column not in columns]
        if missing:
            raise LoaderError(f"Employee file {path} is missing columns: {', '.join(missing)}")

        unknown = [column for column in columns if column not in RAW_COLUMNS]
        if unknown:
            logger.warning(
                "Ignoring columns not in the raw layout",
                extra={'columns': unknown}
            )

        for line_number, values in enumerate(reader, start=2):
            if not any(value.strip() for value in values):
                continue

            if len(values) != len(columns):
                logger.warning(
                    "Row has unexpected number of fields",
                    extra={'line': line_number, 'expected': len(columns), 'found': len(values)}
                )

            by_name = dict(zip(columns, values))
            row = {column: by_name.get(column) for column in RAW_COLUMNS}
            if row[ID_COLUMN] is not None:
                row[ID_COLUMN] = row[ID_COLUMN].strip()
            yield row


def read_employee_csv(path: Union[str, Path], delimiter: str = ',') -> list[dict[str, str]]:
    """Read every employee row of a delimited file. See iter_employee_rows."""
    rows = list(iter_employee_rows(path, delimiter=delimiter))

    logger.info(
        "Read employee file",
        extra={'path': str(path), 'rows': len(rows)}
    )

    return rows

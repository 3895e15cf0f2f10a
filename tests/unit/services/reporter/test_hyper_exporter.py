"""
Unit tests for the Tableau Hyper export.
"""

import sys
from datetime import date

import pytest

from hr_etl.cleaner.dates import TermDate
from hr_etl.reporter.config_loader import ReportConfig
from hr_etl.reporter.hyper_exporter import (
    EXTRACT_TABLE,
    column_type,
    export_to_hyper,
    hyper_tables,
    hyper_value,
)
from hr_etl.reporter.reports import REPORT_COLUMNS, REPORT_NAMES, run_all_reports
from hr_etl.reporter.writer import EXTRACT_COLUMNS


@pytest.mark.parametrize("value,column,expected", [
    (None, 'age', None),
    (TermDate.active(), 'termdate', '0000-00-00'),
    (TermDate.terminated(date(2021, 1, 1)), 'termdate', '2021-01-01'),
    (TermDate.unknown(), 'termdate', None),
    (date(2000, 1, 1), 'birthdate', date(2000, 1, 1)),
    (0, 'termination_rate', 0.0),
    (24, 'age', 24),
    ('Sales', 'department', 'Sales'),
])
def test_hyper_value(value, column, expected):
    assert hyper_value(value, column) == expected


def test_column_types_are_fixed_by_name():
    assert column_type('count') == 'big_int'
    assert column_type('net_change_percent') == 'double'
    assert column_type('hire_date') == 'date'
    assert column_type('gender') == 'text'


def test_tables_for_every_report_and_extract(cleaned_batch, as_of):
    reports = run_all_reports(cleaned_batch, ReportConfig(), as_of=as_of)

    tables = hyper_tables(reports, cleaned_batch)

    assert [name for name, _, _ in tables] == list(REPORT_NAMES) + [EXTRACT_TABLE]
    extract_name, extract_columns, extract_rows = tables[-1]
    assert extract_columns == EXTRACT_COLUMNS
    termdates = {row[0]: row[EXTRACT_COLUMNS.index('termdate')] for row in extract_rows}
    assert termdates['E1'] == '0000-00-00'
    assert termdates['E7'] is None


def test_empty_reports_keep_their_columns():
    reports = run_all_reports([], ReportConfig(), as_of=date(2024, 1, 1))

    tables = hyper_tables(reports)

    assert {name: tuple(columns) for name, columns, _ in tables} == REPORT_COLUMNS


def test_missing_library_is_reported(monkeypatch, tmp_path):
    monkeypatch.setitem(sys.modules, 'tableauhyperapi', None)

    with pytest.raises(RuntimeError, match="tableauhyperapi"):
        export_to_hyper({}, output_dir=str(tmp_path))


@pytest.mark.slow
def test_export_writes_hyper_file(cleaned_batch, as_of, tmp_path):
    hyperapi = pytest.importorskip('tableauhyperapi')
    reports = run_all_reports(cleaned_batch, ReportConfig(), as_of=as_of)

    path = export_to_hyper(reports, cleaned_batch, output_dir=str(tmp_path))

    with hyperapi.HyperProcess(hyperapi.Telemetry.DO_NOT_SEND_USAGE_DATA_TO_TABLEAU) as hyper:
        with hyperapi.Connection(endpoint=hyper.endpoint, database=path) as connection:
            employees = connection.execute_scalar_query(
                f"SELECT COUNT(*) FROM {hyperapi.TableName('Extract', EXTRACT_TABLE)}"
            )
            tenure_rows = connection.execute_scalar_query(
                f"SELECT COUNT(*) FROM {hyperapi.TableName('Extract', 'tenure_by_department')}"
            )

    assert employees == len(cleaned_batch)
    assert tenure_rows == 1

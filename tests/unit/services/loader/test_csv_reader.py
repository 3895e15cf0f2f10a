"""
Unit tests for the employee flat file reader.
"""

import pytest

from hr_etl.common.columns import RAW_COLUMNS
from hr_etl.loader.csv_reader import (
    LoaderError,
    iter_employee_rows,
    normalize_header,
    read_employee_csv,
)


HEADER = (
    "id,first_name,last_name,birthdate,gender,race,department,jobtitle,"
    "location,hire_date,termdate,location_city,location_state"
)


@pytest.fixture
def employee_file(tmp_path):
    """Write an employee file and return its path."""
    def _write(*lines, encoding='utf-8', name='hr.csv'):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding=encoding)
        return path
    return _write


@pytest.mark.parametrize("raw,expected", [
    ('id', 'emp_id'),
    ('\ufeffid', 'emp_id'),
    ('\u00ef\u00bb\u00bfid', 'emp_id'),
    (' Hire_Date ', 'hire_date'),
    ('termdate', 'termdate'),
])
def test_normalize_header(raw, expected):
    assert normalize_header(raw) == expected


def test_reads_rows_with_byte_order_mark(employee_file):
    path = employee_file(
        HEADER,
        "00-0037846,Hercule,Bottrell,06-04-1991,Male,Hispanic or Latino,Engineering,"
        "Programmer Analyst I,Headquarters,01-20-2002,,Cleveland,Ohio",
        encoding='utf-8-sig',
    )

    rows = read_employee_csv(path)

    assert len(rows) == 1
    assert rows[0]['emp_id'] == '00-0037846'
    assert rows[0]['birthdate'] == '06-04-1991'
    assert rows[0]['termdate'] == ''
    assert set(rows[0]) == set(RAW_COLUMNS)


def test_values_are_kept_as_text(employee_file):
    path = employee_file(
        HEADER,
        "00-0061718,Arlene,Cowper,1/8/1981,Female,White,Sales,Sales Associate,Remote,"
        "6/3/2019,2021-02-10 10:10:20 UTC,Detroit,Michigan",
    )

    row = read_employee_csv(path)[0]

    assert row['birthdate'] == '1/8/1981'
    assert row['termdate'] == '2021-02-10 10:10:20 UTC'


def test_blank_lines_are_skipped(employee_file):
    path = employee_file(
        HEADER,
        "A,a,b,01/01/2000,Male,White,Sales,Clerk,Remote,01/01/2020,,Erie,Pennsylvania",
        ",,,,,,,,,,,,",
        "B,a,b,01/01/2000,Male,White,Sales,Clerk,Remote,01/01/2020,,Erie,Pennsylvania",
    )

    assert [row['emp_id'] for row in read_employee_csv(path)] == ['A', 'B']


def test_missing_optional_columns_are_none(employee_file):
    path = employee_file(
        "id,birthdate,hire_date,termdate,unused",
        "A,01/01/2000,01/01/2020,,x",
    )

    row = read_employee_csv(path)[0]

    assert row['gender'] is None
    assert 'unused' not in row


def test_custom_delimiter(employee_file):
    path = employee_file(
        "id;birthdate;hire_date;termdate",
        "A;01/01/2000;01/01/2020;",
    )

    assert read_employee_csv(path, delimiter=';')[0]['hire_date'] == '01/01/2020'


def test_missing_required_column(employee_file):
    path = employee_file("id,birthdate,termdate", "A,01/01/2000,")

    with pytest.raises(LoaderError, match="hire_date"):
        read_employee_csv(path)


def test_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")

    with pytest.raises(LoaderError, match="empty"):
        read_employee_csv(path)


def test_missing_file(tmp_path):
    with pytest.raises(LoaderError):
        list(iter_employee_rows(tmp_path / "nope.csv"))


def test_emp_id_is_stripped(employee_file):
    """Padding around the identifier would split one employee into two raw rows"""
    path = employee_file(
        "id,birthdate,hire_date,termdate",
        " 7 ,01/01/2000,01/01/2020,  ",
    )

    row = read_employee_csv(path)[0]

    assert row['emp_id'] == '7'
    assert row['termdate'] == '  '

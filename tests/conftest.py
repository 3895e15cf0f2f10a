"""
Pytest configuration and shared fixtures

This file contains test fixtures that can be used across all tests.
Fixtures are reusable components that set up test preconditions.

Learn more: https://docs.pytest.org/en/stable/fixture.html
"""

import os
from datetime import date
from types import SimpleNamespace

import psycopg2
import psycopg2.extras
import pytest

from hr_etl.cleaner.pipeline import clean_records


AS_OF = date(2024, 1, 1)


@pytest.fixture(scope="session")
def database_url() -> str:
    """
    Provide database URL for tests.

    Uses environment variable if set, otherwise falls back to test default.

    Returns:
        str: PostgreSQL connection URL
    """
    return os.getenv(
        "DATABASE_URL",
        "postgresql://hr:hr@localhost:5432/hr_etl"
    )


@pytest.fixture(scope="session")
def as_of() -> date:
    """Fixed processing date so ages do not depend on the real clock."""
    return AS_OF


def make_raw_employee(emp_id: str, **overrides) -> dict:
    """Build a raw employee row with sensible defaults."""
    row = {
        'emp_id': emp_id,
        'first_name': 'Jane',
        'last_name': 'Doe',
        'birthdate': '05/20/1985',
        'gender': 'Female',
        'race': 'White',
        'department': 'Engineering',
        'jobtitle': 'Data Engineer',
        'location': 'Headquarters',
        'hire_date': '06/01/2010',
        'termdate': '',
        'location_city': 'Cleveland',
        'location_state': 'Ohio',
    }
    row.update(overrides)
    return row


@pytest.fixture(scope="session")
def raw_employee_factory():
    """Provide make_raw_employee to tests that need custom rows."""
    return make_raw_employee


@pytest.fixture(scope="function")
def sample_raw_employee() -> dict:
    """
    Provide a single raw employee row as imported from the flat file.

    Scope: function (created fresh for each test)
    """
    return make_raw_employee('00-0037846')


@pytest.fixture(scope="function")
def sample_raw_batch() -> list[dict]:
    """
    Provide a batch of raw employee rows covering the date conventions.

    - slash and dash birthdates
    - active, terminated (past and future) and malformed termdates
    - an unparseable birthdate and a minor

    Scope: function (created fresh for each test)
    """
    return [
        make_raw_employee('E1', birthdate='01/01/2000', hire_date='01-01-2020', termdate='',
                          gender='Female', department='Engineering', jobtitle='Data Engineer'),
        make_raw_employee('E2', birthdate='05/20/1985', hire_date='06/01/2010',
                          termdate='2021-01-01 00:00:00 UTC', gender='Male',
                          department='Engineering', jobtitle='Data Engineer'),
        make_raw_employee('E3', birthdate='12-31-1958', hire_date='03/15/2005', termdate='  ',
                          gender='Male', race='Asian', department='Sales', jobtitle='Account Executive',
                          location='Remote', location_state='Michigan'),
        make_raw_employee('E4', birthdate='07/04/1990', hire_date='07/04/2015',
                          termdate='2030-05-01 00:00:00 UTC', gender='Female', race='Asian',
                          department='Sales', jobtitle='Account Executive'),
        make_raw_employee('E5', birthdate='1990/07/04', hire_date='09/09/2019', termdate='',
                          gender='Female'),
        make_raw_employee('E6', birthdate='02/14/2010', hire_date='02/14/2023', termdate='',
                          gender='Male'),
        make_raw_employee('E7', birthdate='11/11/1975', hire_date='11/11/2000',
                          termdate='2019-06-30', gender='Non-Conforming', department='Legal'),
    ]


@pytest.fixture(scope="function")
def cleaned_batch(sample_raw_batch, as_of) -> list[dict]:
    """Clean records for sample_raw_batch as of the fixed processing date."""
    return clean_records(sample_raw_batch, as_of=as_of).records


class FakeCursor:
    """Records statements; returns the rows queued on the fake database."""

    def __init__(self, db: SimpleNamespace):
        self.db = db
        self.rowcount = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, query, params=None):
        self.db.executed.append((query, params))
        self.rowcount = self.db.rowcount

    def fetchall(self):
        return list(self.db.rows)


class FakeConnection:
    def __init__(self, db: SimpleNamespace):
        self.db = db
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, cursor_factory=None):
        return FakeCursor(self.db)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


@pytest.fixture
def fake_postgres(monkeypatch):
    """
    Replace psycopg2.connect and execute_batch with in-memory fakes.

    The returned namespace exposes the opened connections, executed
    statements, batches passed to execute_batch, and `rows` / `rowcount`
    that queries return.
    """
    db = SimpleNamespace(connections=[], executed=[], batches=[], rows=[], rowcount=0)

    def connect(dsn):
        conn = FakeConnection(db)
        db.connections.append(conn)
        return conn

    def execute_batch(cur, query, argslist, page_size=100):
        db.batches.append((query, list(argslist)))

    monkeypatch.setattr(psycopg2, "connect", connect)
    monkeypatch.setattr(psycopg2.extras, "execute_batch", execute_batch)
    return db


# Mark tests based on their type for selective running
def pytest_configure(config):
    """
    Register custom pytest markers.

    This allows us to run specific test categories:
    - pytest -m unit        (run only unit tests)
    - pytest -m integration (run only integration tests)
    - pytest -m "not slow"  (skip slow tests)
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (isolated, fast)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (>1 second)"
    )

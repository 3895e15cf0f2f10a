"""
Database Operations for Reporter Service

Reads the clean employee table. Reports are computed in Python over one
snapshot of the table, so every report sees the same rows.
"""

import logging
from typing import Any

import psycopg2
import psycopg2.extras

from hr_etl.cleaner.dates import TermDate
from hr_etl.common.db import DatabaseError, PostgresDB

logger = logging.getLogger(__name__)


def from_db_row(row: dict[str, Any]) -> dict[str, Any]:
    """Rebuild a clean record from staging columns."""
    record = dict(row)
    record['termdate'] = TermDate.from_storage(record.pop('term_status'), record.get('termdate'))
    return record


class ReporterDB(PostgresDB):
    """
    Database interface for the reporter service.

    This class provides methods to:
    - Fetch clean employee records from staging.hr_employees_clean
    """

    def fetch_clean_employees(self) -> list[dict[str, Any]]:
        """
        Fetch every clean employee record.

        Returns:
            List of clean records with termdate as TermDate

        Raises:
            DatabaseError: If query fails
        """
        try:
            with self._get_connection() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    cur.execute("""
                        SELECT
                            emp_id, first_name, last_name, birthdate, gender, race,
                            department, jobtitle, location, location_city, location_state,
                            hire_date, termdate, term_status, age, aged_as_of
                        FROM staging.hr_employees_clean
                        ORDER BY emp_id
                    """)
                    rows = cur.fetchall()

            logger.info(
                "Fetched clean employees",
                extra={"count": len(rows)},
            )
            return [from_db_row(dict(row)) for row in rows]

        except psycopg2.Error as e:
            logger.error(
                "Failed to fetch clean employees",
                extra={"error": str(e), "pgcode": e.pgcode},
            )
            raise DatabaseError(f"Failed to fetch clean employees: {e}") from e

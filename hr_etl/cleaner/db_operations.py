"""
Database Operations for Cleaner Service

This module handles all database interactions for the cleaner:
- Reading raw employee rows from raw.hr_employees_raw
- Writing clean records to staging.hr_employees_clean with upsert logic

The whole batch is written in one transaction, so the staging table is
never left half-cleaned. A full run also removes staging rows whose
emp_id no longer exists in the batch.
"""

import logging
from typing import Any, Optional

import psycopg2
import psycopg2.extras
from psycopg2 import sql

from hr_etl.common.db import DatabaseError, PostgresDB

logger = logging.getLogger(__name__)


UPSERT_CLEAN_EMPLOYEE_SQL = """
    INSERT INTO staging.hr_employees_clean (
        emp_id, first_name, last_name, birthdate, gender, race,
        department, jobtitle, location, location_city, location_state,
        hire_date, termdate, term_status, age, aged_as_of, cleaned_at
    ) VALUES (
        %(emp_id)s, %(first_name)s, %(last_name)s, %(birthdate)s, %(gender)s,
        %(race)s, %(department)s, %(jobtitle)s, %(location)s, %(location_city)s,
        %(location_state)s, %(hire_date)s, %(termdate)s, %(term_status)s,
        %(age)s, %(aged_as_of)s, NOW()
    )
    ON CONFLICT (emp_id)
    DO UPDATE SET
        first_name = EXCLUDED.first_name,
        last_name = EXCLUDED.last_name,
        birthdate = EXCLUDED.birthdate,
        gender = EXCLUDED.gender,
        race = EXCLUDED.race,
        department = EXCLUDED.department,
        jobtitle = EXCLUDED.jobtitle,
        location = EXCLUDED.location,
        location_city = EXCLUDED.location_city,
        location_state = EXCLUDED.location_state,
        hire_date = EXCLUDED.hire_date,
        termdate = EXCLUDED.termdate,
        term_status = EXCLUDED.term_status,
        age = EXCLUDED.age,
        aged_as_of = EXCLUDED.aged_as_of,
        cleaned_at = NOW()
"""


def to_db_row(record: dict[str, Any]) -> dict[str, Any]:
    """
    Flatten a clean record into staging column values.

    The TermDate value is split into a nullable termdate column and a
    term_status column.
    """
    row = dict(record)
    termdate = row.pop('termdate')
    row['termdate'] = termdate.value
    row['term_status'] = termdate.status
    return row


DELETE_STALE_CLEAN_EMPLOYEES_SQL = """
    DELETE FROM staging.hr_employees_clean
    WHERE emp_id <> ALL(%(emp_ids)s)
"""


class CleanerDB(PostgresDB):
    """
    Database interface for the cleaner service.

    This class provides methods to:
    - Fetch raw employee rows
    - Upsert clean employee records into the staging table
    """

    def fetch_raw_employees(self, limit: Optional[int] = None) -> list[dict[str, Any]]:
        """
        Fetch raw employee rows from raw.hr_employees_raw.

        Args:
            limit: Maximum number of rows to fetch. If None, fetch all.

        Returns:
            List of dictionaries keyed by raw column name (all text values)

        Raises:
            DatabaseError: If query fails
        """
        try:
            with self._get_connection() as conn:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    query = sql.SQL("""
                        SELECT
                            emp_id, first_name, last_name, birthdate, gender, race,
                            department, jobtitle, location, hire_date, termdate,
                            location_city, location_state
                        FROM raw.hr_employees_raw
                        ORDER BY emp_id
                        {limit_clause}
                    """).format(
                        limit_clause=sql.SQL("LIMIT %s") if limit else sql.SQL("")
                    )

                    cur.execute(query, [limit] if limit else [])
                    results = cur.fetchall()

                    logger.info(
                        "Fetched raw employee rows",
                        extra={'count': len(results), 'limit': limit}
                    )

                    return [dict(row) for row in results]

        except psycopg2.Error as e:
            logger.error(
                "Failed to fetch raw employees",
                extra={'error': str(e), 'pgcode': e.pgcode}
            )
            raise DatabaseError(f"Failed to fetch raw employees: {e}") from e

    def upsert_clean_employees_batch(
        self,
        records: list[dict[str, Any]],
        prune_missing: bool = False,
    ) -> int:
        """
        Insert or update clean employee records in a single transaction.

        A failing row aborts the whole batch.

        Args:
            records: Clean records produced by the cleaning pipeline
            prune_missing: Also delete staging rows whose emp_id is not in
                `records`. Only valid when `records` covers the whole raw table.

        Returns:
            Number of records upserted

        Raises:
            DatabaseError: If the batch upsert fails
        """
        if not records:
            logger.warning("No clean employees to upsert")
            return 0

        try:
            with self._get_connection() as conn:
                with conn.cursor() as cur:
                    psycopg2.extras.execute_batch(
                        cur,
                        UPSERT_CLEAN_EMPLOYEE_SQL,
                        [to_db_row(record) for record in records],
                    )

                    if prune_missing:
                        cur.execute(
                            DELETE_STALE_CLEAN_EMPLOYEES_SQL,
                            {'emp_ids': [record['emp_id'] for record in records]},
                        )
                        logger.info(
                            "Removed staging rows missing from the raw table",
                            extra={'deleted': cur.rowcount}
                        )

            logger.info(
                "Batch upsert completed",
                extra={'total': len(records), 'pruned': prune_missing}
            )
            return len(records)

        except psycopg2.Error as e:
            logger.error(
                "Batch upsert transaction failed",
                extra={'error': str(e), 'pgcode': e.pgcode}
            )
            raise DatabaseError(f"Batch upsert failed: {e}") from e

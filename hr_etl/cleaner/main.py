"""
Cleaner Service - Main Entry Point

This is the command-line interface for the cleaner service.

Usage:
    python -m hr_etl.cleaner.main [OPTIONS]

Options:
    --as-of DATE          Reference date for the age snapshot (default: today)
    --limit INTEGER       Maximum number of employees to process
    --dry-run            Print what would be done without writing to database
    --verbose            Enable debug logging
    --help               Show this message and exit

Examples:
    # Clean every imported employee:
    python -m hr_etl.cleaner.main

    # Reproduce a previous snapshot:
    python -m hr_etl.cleaner.main --as-of 2024-01-01

    # Dry run to see what would be cleaned:
    python -m hr_etl.cleaner.main --dry-run --verbose

Exit Codes:
    0: Success
    1: Some rows had unparseable values or were skipped
    2: Fatal error (database connection, etc.)
"""

import argparse
import logging
import os
import sys
from datetime import date, datetime, timezone
from typing import Optional

from dotenv import load_dotenv

from hr_etl.common.cli import parse_iso_date

from .db_operations import CleanerDB, DatabaseError
from .pipeline import clean_records

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Normalize employee dates and derive the age snapshot',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--as-of',
        type=parse_iso_date,
        help='Reference date for age (YYYY-MM-DD, default: today)',
        default=None,
        dest='as_of'
    )

    parser.add_argument(
        '--limit',
        type=int,
        help='Maximum number of employees to process',
        default=None
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Print what would be done without writing to database',
        dest='dry_run'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    return parser.parse_args(argv)


def run_cleaner(
    db: CleanerDB,
    as_of: Optional[date] = None,
    limit: Optional[int] = None,
    dry_run: bool = False
) -> dict[str, int]:
    """
    Main cleaner logic.

    Args:
        db: Database interface
        as_of: Reference date for the age snapshot
        limit: Maximum number of employees to process
        dry_run: If True, don't write to database

    Returns:
        Dictionary with statistics: fetched, upserted and the pipeline
        counters (cleaned, skipped, invalid_birthdate, invalid_hire_date,
        malformed_termdate, active, terminated, missing_age, under_min_age)
    """
    stats = {
        'fetched': 0,
        'upserted': 0,
    }

    start_time = datetime.now(timezone.utc)

    logger.info(
        "Starting cleaner service",
        extra={
            'as_of': as_of.isoformat() if as_of else None,
            'limit': limit,
            'dry_run': dry_run,
        }
    )

    try:
        raw_rows = db.fetch_raw_employees(limit=limit)
        stats['fetched'] = len(raw_rows)

        if not raw_rows:
            logger.warning("No raw employees found to clean")
            return stats

        logger.info(f"Fetched {len(raw_rows)} raw employees to clean")

    except DatabaseError as e:
        logger.error(f"Failed to fetch raw employees: {e}")
        raise

    result = clean_records(raw_rows, as_of=as_of)
    stats.update(result.stats)

    if not dry_run and result.records:
        try:
            logger.info(f"Upserting {len(result.records)} clean employees to staging")
            stats['upserted'] = db.upsert_clean_employees_batch(
                result.records,
                # A limited run sees only part of the raw table
                prune_missing=limit is None,
            )

        except DatabaseError as e:
            logger.error(f"Failed to upsert clean employees: {e}")
            raise
    elif dry_run:
        logger.info(
            f"DRY RUN: Would upsert {len(result.records)} clean employees to staging"
        )

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()

    logger.info(
        "Cleaner service completed",
        extra={
            'duration_seconds': duration,
            'as_of': result.as_of.isoformat(),
            'stats': stats,
        }
    )

    return stats


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the cleaner service.

    Returns:
        Exit code (0 = success, 1 = row problems, 2 = fatal error)
    """
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")

    database_url = os.getenv('DATABASE_URL')
    if not database_url:
        logger.error("DATABASE_URL environment variable must be set")
        return 2

    try:
        logger.info("Connecting to database")
        db = CleanerDB(database_url)

        stats = run_cleaner(
            db=db,
            as_of=args.as_of,
            limit=args.limit,
            dry_run=args.dry_run
        )

        problems = (
            stats.get('invalid_birthdate', 0)
            + stats.get('invalid_hire_date', 0)
            + stats.get('malformed_termdate', 0)
            + stats.get('skipped', 0)
        )
        if problems > 0:
            logger.warning(
                f"Completed with {problems} row problems",
                extra={'stats': stats}
            )
            return 1

        logger.info("Cleaner completed successfully")
        return 0

    except DatabaseError as e:
        logger.error(f"Database error: {e}")
        return 2

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130

    except Exception as e:
        logger.error(
            "Unexpected fatal error",
            extra={
                'error': str(e),
                'error_type': type(e).__name__,
            },
            exc_info=True
        )
        return 2


if __name__ == '__main__':
    sys.exit(main())

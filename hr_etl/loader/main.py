"""
Loader Service - Main Entry Point

Usage:
    python -m hr_etl.loader.main --csv PATH [OPTIONS]

Options:
    --csv PATH            Employee flat file to import
    --delimiter TEXT      Field delimiter (default: ',')
    --dry-run            Read and validate the file without writing to database
    --verbose            Enable debug logging

Exit Codes:
    0: Success
    1: Some rows have no emp_id or share one with another row
    2: Fatal error (unreadable file, database connection, etc.)
"""

import argparse
import logging
import sys
from collections import Counter
from typing import Any, Optional

from dotenv import load_dotenv

from .csv_reader import LoaderError, read_employee_csv
from hr_etl.common.db import DatabaseError

from .db_storage import EmployeeStorage, EmployeeStorageError

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Import the employee flat file into the raw table',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--csv', type=str, required=True, dest='csv_path', help='Employee flat file to import')
    parser.add_argument('--delimiter', type=str, default=',', help='Field delimiter')
    parser.add_argument('--dry-run', action='store_true', dest='dry_run', help='Do not write to database')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def run_loader(
    storage: Optional[EmployeeStorage],
    csv_path: str,
    delimiter: str = ',',
    dry_run: bool = False
) -> dict[str, Any]:
    """
    Read the employee file and save it to the raw table.

    Args:
        storage: Storage helper (may be None for a dry run)
        csv_path: Path to the employee file
        delimiter: Field delimiter
        dry_run: If True, don't write to database

    Returns:
        Dictionary with statistics: read, saved, missing_id, duplicate_ids

    Raises:
        LoaderError: If the file cannot be read
        EmployeeStorageError: If saving fails
    """
    stats: dict[str, Any] = {
        'read': 0,
        'saved': 0,
        'missing_id': 0,
        'duplicate_ids': [],
    }

    rows = read_employee_csv(csv_path, delimiter=delimiter)
    stats['read'] = len(rows)

    with_id = []
    for row in rows:
        if row.get('emp_id'):
            with_id.append(row)
        else:
            stats['missing_id'] += 1

    if stats['missing_id']:
        logger.warning(
            "Dropping rows without emp_id",
            extra={'count': stats['missing_id']}
        )

    counts = Counter(row['emp_id'] for row in with_id)
    stats['duplicate_ids'] = sorted(emp_id for emp_id, count in counts.items() if count > 1)
    if stats['duplicate_ids']:
        # Upsert keeps the last occurrence
        logger.warning(
            "Duplicate emp_id values in file, last occurrence wins",
            extra={'duplicate_ids': stats['duplicate_ids'][:20]}
        )

    if dry_run:
        logger.info(f"DRY RUN: Would save {len(with_id)} employees to raw table")
        return stats

    if storage is None:
        raise EmployeeStorageError("Storage is required unless running a dry run")

    stats['saved'] = storage.save_employees_batch(with_id)
    return stats


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the loader service.

    Returns:
        Exit code (0 = success, 1 = row problems, 2 = fatal error)
    """
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")

    try:
        if args.dry_run:
            stats = run_loader(None, args.csv_path, args.delimiter, dry_run=True)
        else:
            storage = EmployeeStorage()
            stats = run_loader(storage, args.csv_path, args.delimiter)

        print("\n" + "=" * 60)
        print("LOADER SUMMARY")
        print("=" * 60)
        print(f"Read:        {stats['read']}")
        print(f"Saved:       {stats['saved']}")
        print(f"Missing id:  {stats['missing_id']}")
        print(f"Duplicates:  {len(stats['duplicate_ids'])}")
        print("=" * 60)

        if stats['missing_id'] or stats['duplicate_ids']:
            return 1
        return 0

    except (LoaderError, DatabaseError, ValueError) as e:
        logger.error(f"Loader failed: {e}")
        return 2

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 2


if __name__ == '__main__':
    sys.exit(main())

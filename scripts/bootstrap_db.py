"""
Scripts - Bootstrap Database.

============================================================
RESPONSIBILITY
============================================================
Initializes the journal database for first-time setup.

- Creates the schema
- Seeds the setup pattern vocabulary
- Prints row counts per table

============================================================
USAGE
============================================================
python -m scripts.bootstrap_db

Options:
  --database-url     Override DATABASE_URL
  --drop-existing    Drop existing tables (DANGEROUS)
  --no-seed          Skip the setup pattern vocabulary

EXIT CODES:
- 0: Database ready
- 1: Configuration invalid
- 2: Initialization failed

============================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from core.config import JournalConfig
from core.exceptions import PersistenceError
from core.log_setup import setup_logging
from database import configure_database, get_table_row_counts, init_database


logger = logging.getLogger("bootstrap_db")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Initialize the trade journal database")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy database URL")
    parser.add_argument("--drop-existing", action="store_true", help="Drop existing tables first")
    parser.add_argument("--no-seed", action="store_true", help="Skip seeding the setup vocabulary")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Bootstrap database entry point."""
    args = parse_args(argv)
    config = JournalConfig.from_env()
    setup_logging(config.log_level, config.log_format)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        return 1

    database_url = args.database_url or config.storage.database_url
    if args.drop_existing:
        logger.warning(f"Dropping existing tables in {database_url}")

    try:
        engine = configure_database(database_url)
        init_database(engine, seed=not args.no_seed, drop_existing=args.drop_existing)
    except PersistenceError as e:
        logger.error(f"Database initialization failed: {e}")
        return 2

    for table, count in get_table_row_counts(engine).items():
        logger.info(f"  {table:<22} {count} rows")
    return 0


if __name__ == "__main__":
    sys.exit(main())

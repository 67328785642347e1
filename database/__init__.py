"""
Database Package.

Engine, sessions and transaction boundaries for the journal.
"""

from .engine import (
    DEFAULT_DATABASE_URL,
    REQUIRED_TABLES,
    configure_database,
    create_all_tables,
    create_database_engine,
    drop_all_tables,
    get_database_url,
    get_engine,
    get_session_factory,
    get_table_row_counts,
    init_database,
    missing_tables,
    transaction_scope,
    verify_database_connection,
)

__all__ = [
    "DEFAULT_DATABASE_URL",
    "REQUIRED_TABLES",
    "configure_database",
    "create_all_tables",
    "create_database_engine",
    "drop_all_tables",
    "get_database_url",
    "get_engine",
    "get_session_factory",
    "get_table_row_counts",
    "init_database",
    "missing_tables",
    "transaction_scope",
    "verify_database_connection",
]

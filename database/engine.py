"""
Database Persistence Layer - Core Engine.

============================================================
PURPOSE
============================================================
Engine, session factory and transaction boundaries for the
journal database.

Requirements:
- SQLAlchemy 2.x ORM (SQLite by default, any SQLAlchemy URL)
- Explicit transaction management
- Hard failures on persistence errors

============================================================
"""

import logging
import os
from contextlib import contextmanager
from typing import Callable, Dict, Generator, Optional

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from dotenv import load_dotenv

from core.exceptions import PersistenceError
from storage.models import Base
from storage.repositories.exceptions import RepositoryException


logger = logging.getLogger(__name__)


DEFAULT_DATABASE_URL = "sqlite:///ghost_journal.db"

REQUIRED_TABLES = [
    "trades",
    "screenshot_analysis",
    "risk_alerts",
    "setup_patterns",
    "execution_patterns",
    "navigation_state",
]

# =============================================================
# DATABASE ENGINE
# =============================================================

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Get database URL from environment."""
    load_dotenv()
    url = os.getenv("DATABASE_URL")

    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"DATABASE_URL not set, using default: {url}")

    return url


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT works on pysqlite."""

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_database_engine(
    database_url: Optional[str] = None,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    echo: bool = False,
) -> Engine:
    """
    Create a SQLAlchemy engine.

    SQLite URLs get a single shared connection for in-memory
    databases; other backends get a QueuePool.

    Args:
        database_url: SQLAlchemy URL (environment or default if omitted)
        pool_size: Connections kept in the pool (non-SQLite)
        max_overflow: Connections beyond pool_size (non-SQLite)
        pool_timeout: Seconds to wait for a connection (non-SQLite)
        pool_recycle: Recycle connections after N seconds (non-SQLite)
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    database_url = database_url or get_database_url()
    logger.info(f"Creating database engine for: {database_url.split('@')[-1]}")

    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}, "echo": echo}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        engine = create_engine(database_url, **options)
        _enable_sqlite_savepoints(engine)
        return engine

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,
        echo=echo,
    )


def configure_database(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """(Re)build the process engine and session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    _engine = create_database_engine(database_url, echo=echo)
    _SessionFactory = None
    return _engine


def get_engine() -> Engine:
    """Get the database engine, creating if necessary."""
    global _engine
    if _engine is None:
        _engine = create_database_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """Get session factory, creating if necessary."""
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )

    return _SessionFactory


# =============================================================
# SESSION MANAGEMENT
# =============================================================


@contextmanager
def transaction_scope(
    session_factory: Optional[Callable[[], Session]] = None,
) -> Generator[Session, None, None]:
    """
    Explicit transaction boundary.

    Commits only if no exception occurs; rolls back on any
    exception. Database and repository failures are re-raised as
    PersistenceError; domain errors propagate unchanged.

    Usage:
        with transaction_scope() as session:
            manager.create_pre_trade(session, ...)
    """
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
        logger.debug("Database transaction committed successfully")
    except (SQLAlchemyError, RepositoryException) as e:
        logger.error(f"Database transaction failed, rolling back: {e}")
        session.rollback()
        raise PersistenceError(f"Transaction failed: {e}", operation="transaction", cause=e) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


def verify_database_connection(engine: Optional[Engine] = None) -> bool:
    """
    Verify the database answers.

    Raises:
        PersistenceError: Connection failed
    """
    engine = engine or get_engine()

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info("Database connection verified successfully")
        return True
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise PersistenceError(f"Cannot connect to database: {e}", operation="connect", cause=e) from e


def create_all_tables(engine: Optional[Engine] = None) -> None:
    engine = engine or get_engine()
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise PersistenceError(f"Table creation failed: {e}", operation="create_tables", cause=e) from e


def drop_all_tables(engine: Optional[Engine] = None) -> None:
    engine = engine or get_engine()
    Base.metadata.drop_all(bind=engine)
    logger.warning("All journal tables dropped")


def missing_tables(engine: Optional[Engine] = None) -> list:
    existing = set(inspect(engine or get_engine()).get_table_names())
    return [t for t in REQUIRED_TABLES if t not in existing]


def init_database(
    engine: Optional[Engine] = None,
    seed: bool = True,
    drop_existing: bool = False,
) -> None:
    """
    Full database initialization sequence.

    1. Verify connection
    2. Optionally drop existing tables
    3. Create tables if not exist
    4. Seed the setup pattern vocabulary
    """
    from pattern_learning.tracker import PatternLearningTracker

    engine = engine or get_engine()
    logger.info("=" * 60)
    logger.info("INITIALIZING JOURNAL DATABASE")
    logger.info("=" * 60)

    verify_database_connection(engine)
    if drop_existing:
        drop_all_tables(engine)
    create_all_tables(engine)

    missing = missing_tables(engine)
    if missing:
        raise PersistenceError(f"Tables missing after creation: {', '.join(missing)}", operation="init")

    if seed:
        factory = sessionmaker(bind=engine, expire_on_commit=False)
        with transaction_scope(factory) as session:
            created = PatternLearningTracker(session).seed_setup_vocabulary()
        logger.info(f"Setup vocabulary seeded ({created} new rows)")

    logger.info("DATABASE INITIALIZATION COMPLETE")


def get_table_row_counts(engine: Optional[Engine] = None) -> Dict[str, int]:
    """Row count per journal table, -1 when a table is missing."""
    counts = {}
    engine = engine or get_engine()

    with engine.connect() as conn:
        for table in REQUIRED_TABLES:
            try:
                counts[table] = conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
            except SQLAlchemyError:
                counts[table] = -1

    return counts


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

"""
Shared test fixtures.

Every test gets its own in-memory SQLite database.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import sessionmaker

from analysis_engine import AnalysisOrchestrator, VisionProvider
from core.config import JournalConfig
from core.context import TradingContext
from database.engine import create_all_tables, create_database_engine


# =============================================================
# DATABASE
# =============================================================

@pytest.fixture
def engine():
    engine = create_database_engine("sqlite://")
    create_all_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


# =============================================================
# CONFIGURATION AND CONTEXT
# =============================================================

@pytest.fixture
def config(tmp_path):
    config = JournalConfig.for_testing()
    config.storage.upload_dir = str(tmp_path / "uploads")
    return config


@pytest.fixture
def context():
    return TradingContext(session_info="9:35 AM")


@pytest.fixture
def setup_time():
    """09:40 in New York (EST), inside the default 09:30-10:15 window."""
    return datetime(2025, 3, 4, 14, 40, tzinfo=timezone.utc)


# =============================================================
# PROVIDER
# =============================================================

@pytest.fixture
def failing_provider():
    from core.exceptions import ProviderAuthError

    provider = MagicMock(spec=VisionProvider)
    provider.analyze.side_effect = ProviderAuthError("no key", provider="mock")
    return provider


@pytest.fixture
def fallback_orchestrator(failing_provider, config):
    return AnalysisOrchestrator(provider=failing_provider, config=config)

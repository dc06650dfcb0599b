# File: tests/conftest.py

import os
import sys

import pytest
import sqlalchemy
from sqlalchemy import text
from sqlalchemy_utils import database_exists, create_database

# 1. Tests run against a throwaway SQLite file unless told otherwise.
#    Must happen before the engine is created on first import of the connection module.
os.environ.setdefault("USE_SQLITE", "true")

# 2. Add project root to path
sys.path.append(os.getcwd())

from ingest_engine.core.database.connection import engine as TEST_ENGINE, SessionLocal as TestingSessionLocal


@pytest.fixture(scope="session", autouse=True)
def global_setup():
    """
    Runs once per test session.
    Ensures the DB exists and the tables are created.
    """
    if not database_exists(TEST_ENGINE.url):
        create_database(TEST_ENGINE.url)

    # Import all models to ensure they are registered
    from ingest_engine.core.database.base import Base
    import ingest_engine.features.observability.data.sql_models

    Base.metadata.create_all(bind=TEST_ENGINE)

    yield


@pytest.fixture(scope="function", autouse=True)
def clean_db(global_setup):
    """
    Runs before EVERY test.
    Detects DB type and empties the tables appropriately.
    """
    with TEST_ENGINE.connect() as conn:
        trans = conn.begin()

        is_sqlite = "sqlite" in str(TEST_ENGINE.url)
        table_names = sqlalchemy.inspect(TEST_ENGINE).get_table_names()

        for table in table_names:
            if is_sqlite:
                conn.execute(text(f'DELETE FROM "{table}";'))
            else:
                conn.execute(text(f'TRUNCATE TABLE "{table}" RESTART IDENTITY CASCADE;'))

        trans.commit()

    yield


@pytest.fixture(scope="function")
def db_session():
    """
    Provides a session for the test to use.
    """
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def event_repo():
    from ingest_engine.features.observability.data.repository import PostgresEventRepo
    return PostgresEventRepo(session_factory=TestingSessionLocal)


@pytest.fixture
def recorder(event_repo):
    from ingest_engine.features.observability.service.recorder import EventRecorder
    return EventRecorder(event_repo)

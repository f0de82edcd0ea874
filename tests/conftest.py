import os
import shutil
import tempfile

import pytest

# Configure the app before it is imported: in-memory database, throwaway
# uploads root, no seeding, no scheduler.
TEST_UPLOADS_DIR = tempfile.mkdtemp(prefix="moviesoft-uploads-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOADS_DIR"] = TEST_UPLOADS_DIR
os.environ["SEED_SAMPLE_MOVIES"] = "false"
os.environ["ENABLE_BACKGROUND_JOBS"] = "false"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from moviesoft.database import Base, get_db
from moviesoft.main import app
from moviesoft.services.upload_store import upload_store

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def clean_uploads():
    """Start every test with empty upload directories."""
    shutil.rmtree(upload_store.root, ignore_errors=True)
    upload_store.ensure_directories()
    yield


@pytest.fixture
def store():
    return upload_store


@pytest.fixture
def session_factory():
    """Session factory bound to the test engine (for code that opens its own sessions)."""
    return TestingSessionLocal


@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    """FastAPI test client with the database dependency overridden."""

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(TEST_UPLOADS_DIR, ignore_errors=True)

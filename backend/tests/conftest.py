"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from api.plaid import get_plaid_client
from database import Base, enable_sqlite_foreign_keys, get_db
from main import app
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import account, plaid_item, user  # noqa: F401
from tests.fixtures.mocks import MockPlaidClient


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(name="mock_plaid_client")
def mock_plaid_client_fixture():
    """Create a mock Plaid client with no scripted pages."""
    return MockPlaidClient()


@pytest.fixture(name="client")
def client_fixture(db, mock_plaid_client):
    """Create a test client with the test database and mocked Plaid client."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_plaid_client():
        return mock_plaid_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_plaid_client] = override_get_plaid_client
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()

"""
Test configuration for the hospital management API.
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["DEBUG"] = "false"
os.environ.pop("BOOTSTRAP_ADMIN_EMAIL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.database import create_db_and_tables, get_session
from app.main import app


@pytest.fixture(scope="function")
def engine():
    """
    Fresh in-memory database for each test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(scope="function")
def client(session):
    """
    Test client bound to the per-test session.
    """
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides = {}

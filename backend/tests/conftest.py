"""Pytest configuration and fixtures for tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from app.database import create_tables, get_db, make_engine
from app.llm.base import LLMProvider
from app.llm.factory import get_llm_provider
from app.services.lead_parser.tracker import DiscriminatorPolicy
from app.services.session_service import SessionStore, get_session_store


@pytest.fixture
def engine():
    """Create an in-memory SQLite database for each test.

    make_engine pins in-memory SQLite to a single connection, so the
    request threads used by TestClient see the same database as the test.
    """
    engine = make_engine("sqlite:///:memory:")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    """Provide a fresh database session for each test."""
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def llm() -> MagicMock:
    """A stand-in LLM provider; set return values on chat/complete_json per test."""
    provider = MagicMock(spec=LLMProvider)
    provider.provider_name = "fake"
    provider.model_name = "fake-model"
    provider.chat = AsyncMock(return_value="Happy to help you find motivated sellers!")
    provider.complete = AsyncMock(return_value="")
    provider.complete_json = AsyncMock(return_value={})
    return provider


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(policy=DiscriminatorPolicy.OWNER)


@pytest.fixture
def client(engine, llm, store):
    """TestClient wired to the test database, the fake LLM and a fresh session store."""
    from app.main import app

    SessionLocal = sessionmaker(bind=engine)

    def _get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_llm_provider] = lambda: llm
    app.dependency_overrides[get_session_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

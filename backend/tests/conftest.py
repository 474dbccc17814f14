"""
Shared fixtures: an in-memory SQLite database wired into the FastAPI app,
and a TestClient with report generation kept on the template path.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from applebites.core.config import settings
from applebites.core.database import get_db, get_session_factory, init_db
from applebites.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def no_llm(monkeypatch):
    """Keep report generation offline."""
    monkeypatch.setattr(settings, "LLM_ENABLED", False)
    monkeypatch.setattr(settings, "CRM_EXPORT_ON_SUBMIT", False)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def sample_financials():
    return {
        "netIncome": "100000",
        "interest": "5000",
        "taxes": "20000",
        "depreciation": "10000",
        "amortization": "0",
        "ownerSalary": "50000",
        "personalExpenses": "",
        "oneTimeExpenses": "",
        "otherAdjustments": "",
    }

"""Shared test infrastructure for the Submission API test suite.

Provides:
- engine / session_factory: file-backed temporary SQLite with all tables created
- store: SubmissionStore bound to the test session factory
- service / dashboard: SubmissionService and DashboardService over that store
- make_submission: factory that creates submissions through the service
- client: httpx AsyncClient over a FastAPI app whose store dependency is overridden
- settings_env: set environment overrides and reload cached Settings
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from submission_api.app.config import get_settings
from submission_api.infra.database import init_db
from submission_api.infra.submission_store import SubmissionStore, get_submission_store
from submission_api.services.dashboard_service import DashboardService
from submission_api.services.submission_service import SubmissionService


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _fresh_settings():
    """Every test starts and ends with freshly loaded Settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings_env(monkeypatch):
    """Set environment variables and reload Settings.

    Usage:
        settings_env(ALLOWED_SOURCES="n8n,Website Form")
    """
    def _apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, str(value))
        get_settings.cache_clear()
        return get_settings()

    return _apply


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine(tmp_path):
    """Async SQLite engine on a temp file with all tables created.

    A file (not :memory:) so concurrent sessions see the same database.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'submissions.db'}",
        connect_args={"check_same_thread": False},
    )
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return SubmissionStore(session_factory, timeout=5.0)


@pytest.fixture
def service(store):
    return SubmissionService(store)


@pytest.fixture
def dashboard(store):
    return DashboardService(store)


# ---------------------------------------------------------------------------
# Submission factory
# ---------------------------------------------------------------------------

@pytest.fixture
def make_submission(service):
    """Factory that creates a submission through the service.

    Usage:
        sub = await make_submission(name="Jane Doe", submissionType="moving")
    """
    counter = {"n": 0}

    async def _factory(**fields) -> dict:
        counter["n"] += 1
        payload = {
            "name": f"Test Lead {counter['n']}",
            "email": f"lead{counter['n']}@example.com",
            "message": "Looking for a quote",
        }
        payload.update(fields)
        return await service.create(payload)

    return _factory


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

def build_test_app(store: SubmissionStore):
    """A fresh FastAPI app with the submissions router and error handlers."""
    from fastapi import FastAPI

    from submission_api.app.errors import register_exception_handlers
    from submission_api.app.routes.submissions import router as submissions_router

    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(submissions_router)
    test_app.dependency_overrides[get_submission_store] = lambda: store
    return test_app


@pytest.fixture
async def client(store):
    async with AsyncClient(
        transport=ASGITransport(app=build_test_app(store)),
        base_url="http://testserver",
    ) as client:
        yield client

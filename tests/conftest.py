"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

# ---------------------------------------------------------------------------
# The Slack verification token is read from the environment; give the test
# run a known value before anything imports the API.
# ---------------------------------------------------------------------------
TEST_VERIFICATION_TOKEN = "test-verification-token"
os.environ.setdefault("VERIFICATION_TOKEN", TEST_VERIFICATION_TOKEN)

import pytest  # noqa: E402
from sqlalchemy import Engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from goodpoint.config import GoodPointConfig, SlackConfig  # noqa: E402
from goodpoint.database.engine import create_db_engine, init_db  # noqa: E402
from goodpoint.database.stores import LedgerStore  # noqa: E402
from goodpoint.services.ledger_service import LedgerService  # noqa: E402


class FakeClock:
    """Deterministic clock: every call moves one minute forward."""

    def __init__(self, start: datetime, step: timedelta = timedelta(minutes=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with the ledger tables.

    Uses StaticPool so worker threads (``run_db``) share the same in-memory
    database.
    """
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine with a real connection pool, for tests that
    run atomic units from several threads at once."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine) -> LedgerStore:
    return LedgerStore(db_engine, retry_backoff=0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def ledger(store, clock) -> LedgerService:
    return LedgerService(store, clock=clock)


@pytest.fixture
def app_config() -> GoodPointConfig:
    return GoodPointConfig(workspace_name="Test Workspace", timezone="Asia/Tokyo")


@pytest.fixture
def slack_config() -> SlackConfig:
    return SlackConfig(
        verification_token=TEST_VERIFICATION_TOKEN,
        workspace_name="Test Workspace",
        ranking_limit=10,
        timezone="Asia/Tokyo",
    )


@pytest.fixture
def client(store, app_config, slack_config):
    """FastAPI TestClient wired to the in-memory ledger."""
    from fastapi.testclient import TestClient

    from goodpoint.api.deps import get_config, get_slack_config, get_store
    from goodpoint.api.main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_config] = lambda: app_config
    app.dependency_overrides[get_slack_config] = lambda: slack_config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()

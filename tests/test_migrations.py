"""
tests/test_migrations — Alembic Revision vs. ORM Models
========================================================
Upgrades a fresh SQLite file to ``head`` and asks Alembic's autogenerate
comparison whether the migrated schema still matches ``Base.metadata``.
"""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.autogenerate import compare_metadata
from alembic.config import Config
from alembic.migration import MigrationContext
from sqlalchemy.pool import NullPool

from goodpoint.database.engine import create_db_engine
from goodpoint.database.models import Base

REPO_ROOT = Path(__file__).resolve().parents[1]


def _upgrade_to_head(url: str, monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", url)
    cfg = Config()
    cfg.set_main_option("script_location", str(REPO_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", url)
    command.upgrade(cfg, "head")


class TestInitialRevision:
    def test_schema_matches_models(self, tmp_path, monkeypatch):
        url = f"sqlite:///{tmp_path / 'migrated.db'}"
        _upgrade_to_head(url, monkeypatch)

        engine = create_db_engine(url, poolclass=NullPool)
        try:
            with engine.connect() as conn:
                context = MigrationContext.configure(
                    conn, opts={"compare_type": True, "compare_server_default": True}
                )
                assert compare_metadata(context, Base.metadata) == []
        finally:
            engine.dispose()

    def test_users_points_defaults_to_zero_in_the_database(self, tmp_path, monkeypatch):
        url = f"sqlite:///{tmp_path / 'migrated.db'}"
        _upgrade_to_head(url, monkeypatch)

        engine = create_db_engine(url, poolclass=NullPool)
        try:
            with engine.begin() as conn:
                conn.exec_driver_sql("INSERT INTO users (user_id) VALUES ('U1')")
                points = conn.exec_driver_sql(
                    "SELECT points FROM users WHERE user_id = 'U1'"
                ).scalar_one()
        finally:
            engine.dispose()
        assert points == 0

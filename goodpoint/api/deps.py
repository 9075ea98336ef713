"""
goodpoint.api.deps — FastAPI dependency injection
==================================================
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy import Engine

from goodpoint.config import GoodPointConfig, SlackConfig, load_config, load_slack_config
from goodpoint.database.engine import create_db_engine
from goodpoint.database.stores import LedgerStore
from goodpoint.services.ledger_service import LedgerService
from goodpoint.slack.dispatcher import CommandDispatcher


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> GoodPointConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_slack_config() -> SlackConfig:
    return load_slack_config(get_config())


def get_store(
    engine: Annotated[Engine, Depends(get_engine)],
    cfg: Annotated[GoodPointConfig, Depends(get_config)],
) -> LedgerStore:
    return LedgerStore(engine, max_attempts=cfg.max_commit_attempts)


def get_ledger(store: Annotated[LedgerStore, Depends(get_store)]) -> LedgerService:
    return LedgerService(store)


def get_dispatcher(
    slack_cfg: Annotated[SlackConfig, Depends(get_slack_config)],
    ledger: Annotated[LedgerService, Depends(get_ledger)],
) -> CommandDispatcher:
    return CommandDispatcher(slack_cfg, ledger)

"""
goodpoint.config — YAML Configuration Loader
=============================================

``config.yaml`` holds the non-secret settings (workspace name, ranking
size, reporting timezone, Slack reply visibility, commit retry budget).
Secrets stay in the environment (``.env``):

* ``VERIFICATION_TOKEN`` — Slack slash-command verification token.
* ``DATABASE_URL`` — SQLAlchemy URL, read by the database engine.

Usage::

    from goodpoint.config import load_config, load_slack_config

    cfg = load_config()            # reads ./config.yaml by default
    slack = load_slack_config(cfg) # adds VERIFICATION_TOKEN from the env
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo

import yaml

from goodpoint.constants import DEFAULT_RANKING_LIMIT, RESPONSE_TYPES


# ---------------------------------------------------------------------------
# Typed settings objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class GoodPointConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Shown as the footer of ranking and history replies
    workspace_name: str

    # Ranking / history
    ranking_limit: int = DEFAULT_RANKING_LIMIT
    timezone: str = "UTC"

    # Slack reply visibility: "in_channel" or "ephemeral"
    response_type: str = "in_channel"

    # Atomic unit retry budget
    max_commit_attempts: int = 5

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True, slots=True)
class SlackConfig:
    """Everything the command dispatcher needs, passed in at construction."""

    verification_token: str
    workspace_name: str = "GoodPoint"
    ranking_limit: int = DEFAULT_RANKING_LIMIT
    timezone: str = "UTC"
    response_type: str = "in_channel"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> GoodPointConfig:
    """Read *path* and return a :class:`GoodPointConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If ``workspace_name`` is missing.
    ValueError
        If a value is out of range.
    zoneinfo.ZoneInfoNotFoundError
        If ``timezone`` is not a known IANA zone.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    cfg = GoodPointConfig(
        workspace_name=raw["workspace_name"],
        ranking_limit=int(raw.get("ranking_limit", DEFAULT_RANKING_LIMIT)),
        timezone=str(raw.get("timezone", "UTC")),
        response_type=str(raw.get("response_type", "in_channel")),
        max_commit_attempts=int(raw.get("max_commit_attempts", 5)),
    )
    _validate(cfg)
    return cfg


def load_slack_config(cfg: GoodPointConfig) -> SlackConfig:
    """Combine *cfg* with ``VERIFICATION_TOKEN`` from the environment.

    Raises
    ------
    RuntimeError
        If ``VERIFICATION_TOKEN`` is missing or blank.
    """
    token = os.getenv("VERIFICATION_TOKEN", "").strip()
    if not token:
        raise RuntimeError(
            "VERIFICATION_TOKEN environment variable is not set.  "
            "Copy it from the Slack app's Basic Information page into .env."
        )
    return SlackConfig(
        verification_token=token,
        workspace_name=cfg.workspace_name,
        ranking_limit=cfg.ranking_limit,
        timezone=cfg.timezone,
        response_type=cfg.response_type,
    )


def _validate(cfg: GoodPointConfig) -> None:
    if cfg.ranking_limit < 1:
        raise ValueError(f"ranking_limit must be >= 1, got {cfg.ranking_limit}")
    if cfg.max_commit_attempts < 1:
        raise ValueError(
            f"max_commit_attempts must be >= 1, got {cfg.max_commit_attempts}"
        )
    if cfg.response_type not in RESPONSE_TYPES:
        raise ValueError(
            f"response_type must be one of {sorted(RESPONSE_TYPES)}, "
            f"got {cfg.response_type!r}"
        )
    # Raises ZoneInfoNotFoundError (a KeyError) for unknown zones.
    cfg.tzinfo

"""Settings loaded from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from todo_engine.records import locale_week_start

ENV_PREFIX = "TODO_ENGINE"

logger = logging.getLogger(__name__)


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


def _env_week_start(env: Mapping[str, str], name: str) -> int:
    default = locale_week_start()
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer, using %d", name, raw, default)
        return default
    if not 0 <= value <= 6:
        logger.warning("%s=%d is outside 0-6, using %d", name, value, default)
        return default
    return value


def _env_level(env: Mapping[str, str], name: str) -> int:
    raw = _env(env, name, "INFO").upper()
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        logger.warning("%s=%r is not a logging level, using INFO", name, raw)
        return logging.INFO
    return level


@dataclass(frozen=True)
class Settings:
    week_start: int
    log_level: int
    log_dir: Optional[Path]
    data_path: Path
    owner_id: str


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from ``env`` (defaults to ``os.environ``)."""

    env = os.environ if env is None else env
    log_dir = _env(env, _k("LOG_DIR"), "")
    return Settings(
        week_start=_env_week_start(env, _k("WEEK_START")),
        log_level=_env_level(env, _k("LOG_LEVEL")),
        log_dir=Path(log_dir).expanduser() if log_dir else None,
        data_path=Path(_env(env, _k("DATA"), "examples/sample_tasks.json")).expanduser(),
        owner_id=_env(env, _k("OWNER"), "demo-user"),
    )

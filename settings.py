from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_REGISTRY_URL_ENV = "SCHEMA_REGISTRY_URL"
_REGISTRY_TIMEOUT_ENV = "SCHEMA_REGISTRY_TIMEOUT"
_CACHE_PATH_ENV = "SCHEMA_CACHE_PATH"
_AUTO_REGISTER_ENV = "SCHEMA_AUTO_REGISTER"
_SUBJECT_STRATEGY_ENV = "SCHEMA_SUBJECT_STRATEGY"
_LOG_LEVEL_ENV = "LOG_LEVEL"

SUBJECT_STRATEGIES = ("record", "topic")


@dataclass(frozen=True)
class Settings:
    registry_url: str
    registry_timeout: float
    cache_path: Optional[str]
    auto_register: bool
    subject_strategy: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_timeout(default: float) -> float:
    value = os.getenv(_REGISTRY_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in {"1", "true", "yes", "on"}:
        return True
    if candidate in {"0", "false", "no", "off"}:
        return False
    return default


def _read_subject_strategy(default: str) -> str:
    candidate = _read_str_env(_SUBJECT_STRATEGY_ENV, default).lower()
    return candidate if candidate in SUBJECT_STRATEGIES else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        registry_url=_read_str_env(_REGISTRY_URL_ENV, "http://localhost:8081").rstrip("/"),
        registry_timeout=_read_timeout(5.0),
        cache_path=_read_optional_env(_CACHE_PATH_ENV, None),
        auto_register=_read_bool_env(_AUTO_REGISTER_ENV, True),
        subject_strategy=_read_subject_strategy("record"),
        log_level=_read_log_level("INFO"),
    )

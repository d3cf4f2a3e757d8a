# src/bium/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- DATA_PATH / PORT from the old Node backend are still honored.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from .core.models import WeekConvention

ENV_PREFIX = "BIUM"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_convention(name: str, default: WeekConvention) -> WeekConvention:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return WeekConvention(raw.strip().lower())
    except ValueError:
        return default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Front-ends ----
    console_enabled: bool
    host: str
    port: int
    cors_origins: List[str]

    # ---- Scheduling ----
    week_convention: WeekConvention
    seed_defaults: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "bium") or "bium"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), False)
        host = _env(_k("HOST"), "127.0.0.1")
        port = _env_int(_k("PORT"), _env_int("PORT", 3000))
        cors_origins = _env_list(_k("CORS_ORIGINS"), ["*"])

        week_convention = _env_convention(_k("WEEK_CONVENTION"), WeekConvention.MONDAY)
        seed_defaults = _env_bool(_k("SEED_DEFAULTS"), True)

        # DATA_PATH is the name the original backend used; accept it as a fallback.
        raw_data_dir = _first_env(_k("DATA_DIR"), "DATA_PATH", default=".local/bium") or ".local/bium"
        data_dir = Path(raw_data_dir).expanduser()
        db_path = _env_path(_k("DB_PATH"), data_dir / "db.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            host=host,
            port=port,
            cors_origins=cors_origins,
            week_convention=week_convention,
            seed_defaults=seed_defaults,
            data_dir=data_dir,
            db_path=db_path,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env for anything environment-specific; use config_local.py only for safe overrides.
try:
    import config_local as _config_local  # type: ignore

    # Simple overrides for selected names. Keep it explicit.
    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(SETTINGS, "console_enabled", bool(_config_local.CONSOLE_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "PORT"):
        object.__setattr__(SETTINGS, "port", int(_config_local.PORT))  # type: ignore[misc]
except ImportError:
    pass


def get_settings() -> Settings:
    return SETTINGS

"""Settings for the Mindbloom game API, read from the environment.

Values come from os.environ, with a project-root .env file (python-dotenv)
filling in anything the real environment leaves unset.

Everything that could make the first finished game blow up is checked
here, at startup:
- SCORING_PROFILE must name an entry of mindbloom.scoring.SCORING_PROFILES
- CALENDAR_TIMEZONE must be known to the zoneinfo database
- APP_PORT and SESSION_IDLE_MINUTES must be integers (idle minutes >= 1)

Usage:
    from mindbloom.config import get_settings
    settings = get_settings()
    print(settings.calendar_timezone)  # "UTC"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from mindbloom.scoring import SCORING_PROFILES

PROJECT_ROOT = Path(__file__).resolve().parent.parent
# Project root only; parent directories are never searched.
_DOTENV_PATH = PROJECT_ROOT / ".env"

_DEFAULT_CORS = "http://localhost:3000,http://localhost:5173"


@dataclass(frozen=True)
class Settings:
    """Resolved, validated configuration. Defaults suit local development."""

    # Server
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # Content
    level_catalog_path: Path

    # Game behaviour
    scoring_profile: str
    calendar_timezone: str
    session_idle_minutes: int


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default)


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = _env(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _scoring_profile(value: str) -> str:
    """Checks a profile name against SCORING_PROFILES.

    Raises:
        ValueError: Naming the valid profiles.
    """
    if value not in SCORING_PROFILES:
        options = ", ".join(sorted(SCORING_PROFILES))
        raise ValueError(
            f"Invalid value for SCORING_PROFILE: {value!r}. Valid options: {options}"
        )
    return value


def _timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Invalid value for CALENDAR_TIMEZONE: {value!r}") from exc
    return value


def _csv(value: str) -> list[str]:
    """Comma-separated list; blanks and surrounding whitespace dropped."""
    return [part.strip() for part in value.split(",") if part.strip()]


def _load_settings() -> Settings:
    load_dotenv(_DOTENV_PATH)

    catalog = _env("LEVEL_CATALOG_PATH", "")
    return Settings(
        app_env=_env("APP_ENV", "development"),
        app_port=_env_int("APP_PORT", 8000),
        log_level=_env("LOG_LEVEL", "info"),
        cors_origins=_csv(_env("CORS_ORIGINS", _DEFAULT_CORS)),
        level_catalog_path=(
            Path(catalog) if catalog else PROJECT_ROOT / "content" / "levels.json"
        ),
        scoring_profile=_scoring_profile(_env("SCORING_PROFILE", "standard")),
        calendar_timezone=_timezone(_env("CALENDAR_TIMEZONE", "UTC")),
        session_idle_minutes=_env_int("SESSION_IDLE_MINUTES", 30, minimum=1),
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the process-wide Settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings

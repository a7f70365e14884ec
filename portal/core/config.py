from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so casting and validation stay in one place
    return os.environ.get(name, default).strip()


def _getbool(name: str, default: str = "false") -> bool:
    return _getenv(name, default).lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    api_base_url: str
    api_timeout_seconds: float
    expiring_soon_days: int
    redis_url: str | None
    cors_origins: tuple[str, ...] = ("http://localhost:5173",)

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")
    timeout_raw = _getenv("API_TIMEOUT_SECONDS", "10")
    window_raw = _getenv("EXPIRING_SOON_DAYS", "30")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    try:
        api_timeout_seconds = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"API_TIMEOUT_SECONDS must be a number (got {timeout_raw!r})"
        ) from None
    if api_timeout_seconds <= 0:
        raise ValueError(
            f"API_TIMEOUT_SECONDS must be positive (got {timeout_raw!r})"
        )

    try:
        expiring_soon_days = int(window_raw)
    except ValueError:
        raise ValueError(
            f"EXPIRING_SOON_DAYS must be an integer (got {window_raw!r})"
        ) from None
    if expiring_soon_days < 0:
        raise ValueError(
            f"EXPIRING_SOON_DAYS must be >= 0 (got {window_raw!r})"
        )

    api_base_url = _getenv("API_BASE_URL", "http://localhost:8080/api").rstrip("/")
    if not api_base_url.startswith(("http://", "https://")):
        raise ValueError(f"API_BASE_URL must be an http(s) URL (got {api_base_url!r})")

    redis_url = _getenv("REDIS_URL", "") or None
    cors_origins = tuple(
        o.strip()
        for o in _getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
        if o.strip()
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getbool("LOG_JSON"),
        port=port,
        api_base_url=api_base_url,
        api_timeout_seconds=api_timeout_seconds,
        expiring_soon_days=expiring_soon_days,
        redis_url=redis_url,
        cors_origins=cors_origins,
    )


# Module-level singleton so imports are cheap
SETTINGS = load_settings()

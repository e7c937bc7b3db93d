from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DATABASE_URL: SQLAlchemy URL of the store. Default 'sqlite:///./data/app.db'
    - DB_POOL_SIZE / DB_MAX_OVERFLOW: connection pool sizing (5 / 10)
    - DB_ECHO: 'true' to log every SQL statement (default: false)
    - BCRYPT_ROUNDS: password hashing work factor (default: 10)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - ENABLE_ROLE_AUTH: 'true' to gate admin-only routes behind HTTP Basic (default: false)
    - ADMIN_ROLE: user_type value granting admin access (default: 'admin')
    - RATE_LIMIT_MAX_REQUESTS: requests allowed per client per window, 0 disables (default: 100)
    - RATE_LIMIT_WINDOW_SECONDS: length of the rate limit window (default: 60)
    - LOG_LEVEL: root log level (default: INFO)
    - LOG_FORMAT: 'text' (default) or 'json'
    """

    database_url: str
    db_pool_size: int
    db_max_overflow: int
    db_echo: bool
    bcrypt_rounds: int
    cors_allow_origins: List[str]
    enable_role_auth: bool
    admin_role: str
    rate_limit_max_requests: int
    rate_limit_window_seconds: int
    log_level: str
    log_format: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int, minimum: int = 0) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    log_format = _get_env("LOG_FORMAT", "text").strip().lower()
    if log_format not in {"text", "json"}:
        log_format = "text"

    return Settings(
        database_url=_get_env("DATABASE_URL", "sqlite:///./data/app.db").strip(),
        db_pool_size=_parse_int(_get_env("DB_POOL_SIZE", "5"), 5, minimum=1),
        db_max_overflow=_parse_int(_get_env("DB_MAX_OVERFLOW", "10"), 10),
        db_echo=_parse_bool(_get_env("DB_ECHO", "false"), False),
        # bcrypt accepts 4..31
        bcrypt_rounds=min(_parse_int(_get_env("BCRYPT_ROUNDS", "10"), 10, minimum=4), 31),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        enable_role_auth=_parse_bool(_get_env("ENABLE_ROLE_AUTH", "false"), False),
        admin_role=_get_env("ADMIN_ROLE", "admin").strip(),
        rate_limit_max_requests=_parse_int(_get_env("RATE_LIMIT_MAX_REQUESTS", "100"), 100),
        rate_limit_window_seconds=_parse_int(_get_env("RATE_LIMIT_WINDOW_SECONDS", "60"), 60, minimum=1),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_format=log_format,
    )

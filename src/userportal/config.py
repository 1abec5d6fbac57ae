# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Runtime settings read from the environment (and an optional .env file)."""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from userportal.log import logger

_TRUTHY = {"1", "true", "yes", "y"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _secret(name: str, production: bool) -> str:
    value = os.getenv(name, "").strip()
    if value:
        return value
    if production:
        raise RuntimeError(f"Missing {name} in environment")
    logger.warning("{} is not set; using an ephemeral random secret", name)
    return secrets.token_urlsafe(32)


@dataclass(frozen=True)
class Settings:
    session_secret: str
    token_secret: str
    database_url: str
    host: str
    port: int
    environment: str
    password_hash_cost: int
    session_max_age: int
    token_max_age: int

    @property
    def production(self) -> bool:
        return self.environment == "production"

    def cookie_settings(self) -> dict:
        return {"httponly": True, "samesite": "lax", "secure": self.production}


def load_settings(*, dotenv: bool = True) -> Settings:
    """Build Settings from the process environment.

    `APP_ENV` wins over `NODE_ENV`; anything other than "production" is
    treated as development.
    """
    if dotenv:
        load_dotenv()

    environment = (os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development").strip().lower()
    production = environment == "production"

    host, port = server_address()
    default_db = "sqlite:///" + str(Path(os.getenv("DATA_DIR", "data")).resolve() / "userportal.db")

    return Settings(
        session_secret=_secret("SESSION_SECRET", production),
        token_secret=_secret("JWT_SECRET", production),
        database_url=os.getenv("DATABASE_URL", "").strip() or default_db,
        host=host,
        port=port,
        environment=environment,
        password_hash_cost=_env_int("PASSWORD_HASH_COST", 12),
        session_max_age=_env_int("SESSION_MAX_AGE", 3600),
        token_max_age=_env_int("TOKEN_MAX_AGE", 24 * 60 * 60),
    )


def server_address() -> tuple[str, int]:
    return os.getenv("HOST", "0.0.0.0"), _env_int("PORT", 3000)


def reload_requested() -> bool:
    return os.getenv("RELOAD", "false").lower() in _TRUTHY

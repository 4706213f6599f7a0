"""
Runtime configuration for ledger-bank.

Values come from the process environment, with a local .env file loaded first
(existing environment variables win).
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from typing import List

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True), override=False)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    database_url: str = "sqlite+aiosqlite:///./ledger_bank.db"
    db_echo: bool = False
    jwt_secret: str = "devsecret"
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 24 * 60
    starting_balance: Decimal = Decimal("1000.00")
    bcrypt_rounds: int = 12
    cookie_secure: bool = False
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:3001"]
    )
    log_level: str = "INFO"
    log_dir: str = "./logs"


def load_settings() -> Settings:
    """
    Build a Settings object from the current environment.
    """
    origins = os.getenv("CORS_ORIGINS")
    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        db_echo=_env_bool("DB_ECHO", False),
        jwt_secret=os.getenv("JWT_SECRET", Settings.jwt_secret),
        jwt_expires_minutes=int(os.getenv("JWT_EXPIRES_MINUTES", str(Settings.jwt_expires_minutes))),
        starting_balance=Decimal(os.getenv("STARTING_BALANCE", str(Settings.starting_balance))),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", str(Settings.bcrypt_rounds))),
        cookie_secure=_env_bool("COOKIE_SECURE", False),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else Settings().cors_origins,
        log_level=os.getenv("LOG_LEVEL", Settings.log_level).upper(),
        log_dir=os.getenv("LOG_DIR", Settings.log_dir),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()

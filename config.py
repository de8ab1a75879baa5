"""
Application settings.

Values are read from the environment after loading `.env` from the project
root. See `.env.example` for the full list.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"


def _split_csv(value: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    jwt_secret_key: Optional[str]
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 480
    event_publisher: str = "outbox"  # outbox, log
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)
    admin_username: str = "admin@developerstore.dev"
    admin_password: str = "Admin@123"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""

    load_dotenv(dotenv_path=env_path)

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        jwt_secret_key=os.getenv("JWT_SECRET_KEY"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480")),
        event_publisher=os.getenv("EVENT_PUBLISHER", "outbox").strip().lower(),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")),
        admin_username=os.getenv("ADMIN_USERNAME", "admin@developerstore.dev"),
        admin_password=os.getenv("ADMIN_PASSWORD", "Admin@123"),
    )


__all__ = ["Settings", "get_settings"]

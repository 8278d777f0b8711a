"""Pydantic settings for the Passwords share API.

Behavior:
- Reads ENV_FILE environment variable at import time and uses it as the env file path.
- If ENV_FILE is not set, falls back to ".env".
- ALLOWED_ORIGINS accepts a JSON array string (e.g. '["http://localhost:3000"]') or a Python list.
Usage:
    from passwords.config import settings
    db_url = settings.DATABASE_URL
"""

from __future__ import annotations

import os
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./passwords.db"
    SQL_DEBUG: bool = False

    # JWT / Auth
    JWT_SECRET_KEY: str = "change-me"  # override in env for production
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # Server
    HOST: str = "localhost"
    PORT: int = 8000
    DEBUG: bool = True

    # CORS - Accepts JSON array string or Python list
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE: str = "logs/app.log"
    LOG_MAX_BYTES: int = 10485760  # 10MB
    LOG_BACKUP_COUNT: int = 5

    # Sharing
    USER_SEARCH_LIMIT: int = 512
    DEFAULT_SSE_TYPE: str = "SSEv1r2"
    # Clear a password's has_shares flag when its last share is deleted
    CLEAR_HAS_SHARES_ON_DELETE: bool = False

    class Config:
        # Use ENV_FILE env var to choose which .env file to load
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        # allow case-insensitive env names
        case_sensitive = False


# singleton settings instance
settings = Settings()

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings
from functools import lru_cache

from app.utils.constants import EXCHANGE_RATE

# Project root (the directory that holds app/ and pyproject.toml)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Sponsorship Pro"
    DEBUG: bool = True
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # CORS: can be overridden with the CORS_ORIGINS env var as a JSON array
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # Finance: single process-wide EUR -> UGX rate
    EXCHANGE_RATE: float = EXCHANGE_RATE

    # Storage
    STORAGE_BACKEND: Literal["json", "sql", "memory"] = "json"
    DB_FILE: Path = _PROJECT_ROOT / "data" / "database.json"
    DATABASE_URL: str = "sqlite:///./sponsorship.db"

    # Uploads
    MAX_UPLOAD_MB: int = 10
    UPLOADS_DIR: Path = _PROJECT_ROOT / "data" / "uploads"
    TEMPLATES_DIR: Path = _PROJECT_ROOT / "data" / "templates"

    # Realtime: events queued per observer before new ones are dropped
    BROADCAST_QUEUE_SIZE: int = 100

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()

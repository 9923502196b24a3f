from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

CONFIG_CANDIDATES = (
    "config/config.yaml",
    "backend/config/config.yaml",
    "config/config.example.yaml",
    "backend/config/config.example.yaml",
)


class ReviewConfig(BaseModel):
    default_limit: int = 20
    max_limit: int = 100


class IngestConfig(BaseModel):
    rate_limit: str = "30/minute"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: str = "./backend/logs/app.log"


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///./backend/data/vibeless.db"


class SecurityConfig(BaseModel):
    # API key -> owner id
    api_keys: dict[str, str] = Field(default_factory=dict)
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]


class AppConfig(BaseModel):
    review: ReviewConfig = ReviewConfig()
    ingest: IngestConfig = IngestConfig()
    logging: LoggingConfig = LoggingConfig()
    database: DatabaseConfig = DatabaseConfig()
    security: SecurityConfig = SecurityConfig()


def find_config_path() -> Path:
    """APP_CONFIG_PATH first, then the usual locations, example files last."""
    explicit = os.getenv("APP_CONFIG_PATH")
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise FileNotFoundError(f"APP_CONFIG_PATH points to a missing file: {path}")
        return path
    for candidate in CONFIG_CANDIDATES:
        path = Path(candidate)
        if path.is_file():
            return path
    raise FileNotFoundError("No config.yaml found in config/ or backend/config/")


@lru_cache
def get_config() -> AppConfig:
    with find_config_path().open("r", encoding="utf-8") as file:
        raw = yaml.safe_load(file) or {}
    return AppConfig(**raw)

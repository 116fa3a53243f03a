"""Configuration module for the SchoolShelf application."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from schoolshelf.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_list(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    IDENTITY_TOKEN_SECRET: str
    IDENTITY_TOKEN_ISSUER: str
    UPLOAD_DIR: str
    UPLOAD_MAX_BYTES: int
    UPLOAD_URL_PREFIX: str
    CORS_ORIGINS: tuple[str, ...]
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    API_BASE_URL: str
    CLIENT_TIMEOUT_SECONDS: float
    UPLOAD_TIMEOUT_SECONDS: float
    TOKEN_CACHE_BUFFER_SECONDS: int
    DEFAULT_PAGE_SIZE: int
    MAX_PAGE_SIZE: int
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=False)

    config = Config(
        APP_NAME="SchoolShelf",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./schoolshelf.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        IDENTITY_TOKEN_SECRET=os.getenv("IDENTITY_TOKEN_SECRET", "change_me_identity_secret"),
        IDENTITY_TOKEN_ISSUER=os.getenv("IDENTITY_TOKEN_ISSUER", "schoolshelf-identity"),
        UPLOAD_DIR=os.getenv("UPLOAD_DIR", "./uploads"),
        UPLOAD_MAX_BYTES=int(os.getenv("UPLOAD_MAX_BYTES", str(5 * 1024 * 1024))),
        UPLOAD_URL_PREFIX=os.getenv("UPLOAD_URL_PREFIX", "/uploads"),
        CORS_ORIGINS=_as_list(os.getenv("CORS_ORIGINS"), default=("http://localhost:3000",)),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api"),
        API_BASE_URL=os.getenv("API_BASE_URL", "http://localhost:8000"),
        CLIENT_TIMEOUT_SECONDS=float(os.getenv("CLIENT_TIMEOUT_SECONDS", "30")),
        UPLOAD_TIMEOUT_SECONDS=float(os.getenv("UPLOAD_TIMEOUT_SECONDS", "60")),
        TOKEN_CACHE_BUFFER_SECONDS=int(os.getenv("TOKEN_CACHE_BUFFER_SECONDS", "300")),
        DEFAULT_PAGE_SIZE=int(os.getenv("DEFAULT_PAGE_SIZE", "20")),
        MAX_PAGE_SIZE=int(os.getenv("MAX_PAGE_SIZE", "100")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2", "postgresql+psycopg"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.UPLOAD_MAX_BYTES < 1:
        raise ConfigurationError("UPLOAD_MAX_BYTES must be >= 1.")
    if config.CLIENT_TIMEOUT_SECONDS <= 0 or config.UPLOAD_TIMEOUT_SECONDS <= 0:
        raise ConfigurationError("Client timeouts must be > 0.")
    if config.TOKEN_CACHE_BUFFER_SECONDS < 0:
        raise ConfigurationError("TOKEN_CACHE_BUFFER_SECONDS must be >= 0.")
    if not 1 <= config.DEFAULT_PAGE_SIZE <= config.MAX_PAGE_SIZE:
        raise ConfigurationError("DEFAULT_PAGE_SIZE must be between 1 and MAX_PAGE_SIZE.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and "change_me" in config.IDENTITY_TOKEN_SECRET.lower():
        raise ConfigurationError("Production IDENTITY_TOKEN_SECRET uses a placeholder value.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)

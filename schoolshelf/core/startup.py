"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from schoolshelf.core.config import get_config
from schoolshelf.core.logging_config import configure_logging
from schoolshelf.database.db import create_schema, get_active_database_url, verify_database_connection

logger = logging.getLogger(__name__)


def validate_startup_config() -> None:
    """Fail-fast config and connectivity checks."""
    config = get_config()
    database_ok = verify_database_connection()
    active_database_url = get_active_database_url()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )

    if config.is_production and active_database_url.startswith("sqlite"):
        logger.warning(
            "startup.production.sqlite_detected",
            extra={"event": "startup.production.sqlite_detected"},
        )

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": active_database_url.split("://", 1)[0],
            "db_connectivity_required": config.DB_CONNECTIVITY_REQUIRED,
        },
    )


def prepare_storage() -> Path:
    """Create the upload directory served under UPLOAD_URL_PREFIX."""
    upload_dir = Path(get_config().UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def bootstrap() -> None:
    """Initialize logging, validate runtime configuration and prepare storage."""
    configure_logging()
    validate_startup_config()
    prepare_storage()

    config = get_config()
    # Production schemas are managed by alembic.
    if config.ENV == "development" and get_active_database_url().startswith("sqlite"):
        create_schema()

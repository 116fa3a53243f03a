"""Health endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from schoolshelf.core.config import Config
from schoolshelf.core.dependencies import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health(settings: Config = Depends(get_settings)) -> dict:
    return {"status": "ok", "service": settings.APP_NAME, "version": settings.APP_VERSION}

"""Root API router."""

from __future__ import annotations

from fastapi import APIRouter

from schoolshelf.api.v1 import books, categories, favorites, health, loans, schools, upload, users
from schoolshelf.core.config import get_config

api_router = APIRouter(prefix=get_config().API_PREFIX)
api_router.include_router(health.router)
api_router.include_router(users.router)
api_router.include_router(schools.router)
api_router.include_router(categories.router)
api_router.include_router(books.router)
api_router.include_router(loans.router)
api_router.include_router(favorites.router)
api_router.include_router(upload.router)


def get_api_router() -> APIRouter:
    return api_router

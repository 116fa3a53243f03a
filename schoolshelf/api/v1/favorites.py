"""Favorite endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from schoolshelf.core.dependencies import Caller, get_db_session, require_scope
from schoolshelf.core.enums import AccessArea
from schoolshelf.schemas import FavoriteResponse, FavoriteStatusResponse
from schoolshelf.services.favorite_service import FavoriteService

router = APIRouter(tags=["favorites"])


@router.get("/favorites", response_model=list[FavoriteResponse])
def list_favorites(
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> list:
    return FavoriteService(db).list_favorites(caller.member)


@router.get("/favorites/{book_id}", response_model=FavoriteStatusResponse)
def check_favorite(
    book_id: str,
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> FavoriteStatusResponse:
    return FavoriteStatusResponse(book_id=book_id, is_favorite=FavoriteService(db).is_favorite(caller.member, book_id))


@router.post("/favorites/{book_id}", response_model=FavoriteStatusResponse)
def toggle_favorite(
    book_id: str,
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> FavoriteStatusResponse:
    state = FavoriteService(db).toggle(caller.tenant_scope, caller.member, book_id)
    return FavoriteStatusResponse(book_id=book_id, is_favorite=state)

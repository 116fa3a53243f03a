"""Category endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from schoolshelf.core.dependencies import Caller, get_db_session, require_scope
from schoolshelf.core.enums import AccessArea
from schoolshelf.schemas import APIEnvelope, CategoryCreateRequest, CategoryResponse, CategoryUpdateRequest
from schoolshelf.services.catalog_service import CategoryService

router = APIRouter(tags=["categories"])


@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> list:
    return CategoryService(db).list_categories(caller.tenant_scope)


@router.get("/categories/slug/{slug}", response_model=CategoryResponse)
def get_category_by_slug(
    slug: str,
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> CategoryResponse:
    return CategoryResponse.model_validate(CategoryService(db).get_by_slug(caller.tenant_scope, slug))


@router.get("/categories/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: str,
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> CategoryResponse:
    return CategoryResponse.model_validate(CategoryService(db).get(caller.tenant_scope, category_id))


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreateRequest,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> CategoryResponse:
    category = CategoryService(db).create(caller.tenant_scope, payload.model_dump())
    return CategoryResponse.model_validate(category)


@router.put("/categories/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    payload: CategoryUpdateRequest,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> CategoryResponse:
    category = CategoryService(db).update(caller.tenant_scope, category_id, payload.model_dump(exclude_none=True))
    return CategoryResponse.model_validate(category)


@router.delete("/categories/{category_id}", response_model=APIEnvelope)
def delete_category(
    category_id: str,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> APIEnvelope:
    CategoryService(db).remove(caller.tenant_scope, category_id)
    return APIEnvelope(message="Category deleted.")

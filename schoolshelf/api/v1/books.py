"""Book catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from schoolshelf.core.config import Config
from schoolshelf.core.dependencies import Caller, get_db_session, get_settings, require_scope
from schoolshelf.core.enums import AccessArea, AuditAction
from schoolshelf.core.exceptions import ValidationError
from schoolshelf.core.logging import audit
from schoolshelf.schemas import (
    APIEnvelope,
    BookCreateRequest,
    BookResponse,
    BookSearchResponse,
    BookUpdateRequest,
    ImportResultResponse,
)
from schoolshelf.services.catalog_service import CSV_MAX_BYTES, BookService

router = APIRouter(tags=["books"])


@router.get("/books/public", response_model=list[BookResponse])
def list_public_books(
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db_session),
) -> list:
    return BookService(db).list_public(limit=limit)


@router.get("/books/search", response_model=BookSearchResponse)
def search_books(
    q: str | None = Query(default=None, max_length=200),
    category: str | None = Query(default=None),
    available: bool | None = Query(default=None),
    sort_by: str = Query(default="title"),
    sort_order: str = Query(default="asc"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    settings: Config = Depends(get_settings),
    db: Session = Depends(get_db_session),
) -> dict:
    return BookService(db).search(
        caller.tenant_scope,
        query_text=q,
        category_id=category,
        available=available,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit or settings.DEFAULT_PAGE_SIZE,
        max_limit=settings.MAX_PAGE_SIZE,
    )


@router.get("/books", response_model=list[BookResponse])
def list_books(
    category: str | None = Query(default=None),
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> list:
    return BookService(db).list_books(caller.tenant_scope, category_id=category)


@router.get("/books/{book_id}", response_model=BookResponse)
def get_book(
    book_id: str,
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> BookResponse:
    return BookResponse.model_validate(BookService(db).get(caller.tenant_scope, book_id))


@router.post("/books", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
def create_book(
    payload: BookCreateRequest,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> BookResponse:
    book = BookService(db).create(caller.tenant_scope, payload.model_dump())
    audit(AuditAction.BOOK_CREATE.value, caller.log_context(), book_id=book.id)
    return BookResponse.model_validate(book)


@router.post("/books/import", response_model=ImportResultResponse)
def import_books(
    file: UploadFile = File(...),
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> ImportResultResponse:
    raw = file.file.read(CSV_MAX_BYTES + 1)
    if len(raw) > CSV_MAX_BYTES:
        raise ValidationError(f"CSV file is too large. Maximum {CSV_MAX_BYTES // 1024}KB.")
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError("CSV file must be UTF-8 encoded.") from exc

    service = BookService(db)
    result = service.bulk_create(caller.tenant_scope, service.parse_csv(content))
    audit(AuditAction.BOOK_CREATE.value, caller.log_context(), imported=result.success, failed=result.failed)
    return ImportResultResponse.model_validate(result)


@router.put("/books/{book_id}", response_model=BookResponse)
def update_book(
    book_id: str,
    payload: BookUpdateRequest,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> BookResponse:
    book = BookService(db).update(caller.tenant_scope, book_id, payload.model_dump(exclude_none=True))
    audit(AuditAction.BOOK_UPDATE.value, caller.log_context(), book_id=book_id)
    return BookResponse.model_validate(book)


@router.delete("/books/{book_id}", response_model=APIEnvelope)
def delete_book(
    book_id: str,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> APIEnvelope:
    BookService(db).remove(caller.tenant_scope, book_id)
    audit(AuditAction.BOOK_DELETE.value, caller.log_context(), book_id=book_id)
    return APIEnvelope(message="Book deleted.")

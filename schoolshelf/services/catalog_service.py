"""Catalog services: categories and books, always narrowed to the caller's tenant."""

from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, or_

from schoolshelf.auth.tenant_context import TenantScope
from schoolshelf.core.enums import LoanStatus
from schoolshelf.core.exceptions import ConflictError, NotFoundError, ValidationError
from schoolshelf.models import Book, Category, Favorite, Loan, Tenant
from schoolshelf.services.base_service import BaseService
from schoolshelf.utils.validators import clamp, escape_text, is_valid_slug, normalize_isbn, sanitize_text

CSV_MAX_ROWS = 1000
CSV_MAX_BYTES = 1024 * 1024
MAX_QUANTITY = 9999
SORT_FIELDS = {"title", "author", "created_at", "popular"}

_CSV_HEADERS = {
    "title": {"title", "başlık", "kitap adı"},
    "author": {"author", "yazar"},
    "isbn": {"isbn"},
    "description": {"description", "açıklama"},
    "quantity": {"quantity", "adet", "miktar"},
    "category": {"category", "kategori"},
}


def _like_literal(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CategoryService(BaseService):
    """Service for per-tenant book categories."""

    def list_categories(self, scope: TenantScope) -> list[Category]:
        return scope.apply(self.db.query(Category), Category).order_by(Category.name.asc()).all()

    def get(self, scope: TenantScope, category_id: str) -> Category:
        category = self.db.get(Category, category_id)
        if category is None or not scope.owns(category.tenant_id):
            raise NotFoundError("Category not found.")
        return category

    def get_by_slug(self, scope: TenantScope, slug: str) -> Category:
        tenant_id = scope.require_tenant()
        category = (
            self.db.query(Category).filter(Category.tenant_id == tenant_id, Category.slug == slug).first()
        )
        if category is None:
            raise NotFoundError("Category not found.")
        return category

    def create(self, scope: TenantScope, data: dict[str, Any]) -> Category:
        tenant_id = scope.require_tenant()
        slug = str(data.get("slug", "")).strip().lower()
        if not is_valid_slug(slug):
            raise ValidationError("Slug may only contain lowercase letters, digits and dashes.")
        exists = self.db.query(Category.id).filter(Category.tenant_id == tenant_id, Category.slug == slug).first()
        if exists is not None:
            raise ConflictError("This slug is already in use.")

        category = Category(
            tenant_id=tenant_id,
            slug=slug,
            name=escape_text(data.get("name"), max_len=120),
            icon=data.get("icon"),
            color=data.get("color"),
        )
        self.db.add(category)
        self.commit()
        self.db.refresh(category)
        return category

    def update(self, scope: TenantScope, category_id: str, data: dict[str, Any]) -> Category:
        category = self.get(scope, category_id)
        if data.get("name") is not None:
            category.name = escape_text(data["name"], max_len=120)
        for attr in ("icon", "color"):
            if data.get(attr) is not None:
                setattr(category, attr, data[attr])
        self.commit()
        self.db.refresh(category)
        return category

    def remove(self, scope: TenantScope, category_id: str) -> None:
        category = self.get(scope, category_id)
        in_use = self.db.query(func.count(Book.id)).filter(Book.category_id == category.id).scalar()
        if in_use:
            raise ConflictError("This category still has books.")
        self.db.delete(category)
        self.commit()


@dataclass
class ImportResult:
    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class BookService(BaseService):
    """Service for catalog items and their availability counters."""

    def list_public(self, limit: int = 10) -> list[Book]:
        """Latest books across active tenants, for the landing page."""
        return (
            self.db.query(Book)
            .join(Tenant, Tenant.id == Book.tenant_id)
            .filter(Tenant.is_active.is_(True))
            .order_by(Book.created_at.desc())
            .limit(limit)
            .all()
        )

    def list_books(self, scope: TenantScope, category_id: str | None = None) -> list[Book]:
        query = scope.apply(self.db.query(Book), Book)
        if category_id:
            query = query.filter(Book.category_id == category_id)
        return query.order_by(Book.title.asc()).all()

    def search(
        self,
        scope: TenantScope,
        query_text: str | None = None,
        category_id: str | None = None,
        available: bool | None = None,
        sort_by: str = "title",
        sort_order: str = "asc",
        page: int = 1,
        limit: int = 20,
        max_limit: int = 100,
    ) -> dict[str, Any]:
        if sort_by not in SORT_FIELDS:
            raise ValidationError(f"sort_by must be one of: {', '.join(sorted(SORT_FIELDS))}.")
        if sort_order not in {"asc", "desc"}:
            raise ValidationError("sort_order must be 'asc' or 'desc'.")
        page = max(1, page)
        limit = clamp(limit, 1, max_limit)

        query = scope.apply(self.db.query(Book), Book)
        term = (query_text or "").strip()
        if term:
            literal = _like_literal(term)
            if len(term) <= 3:
                pattern = f"{literal}%"
                columns = [Book.title, Book.author]
            else:
                pattern = f"%{literal}%"
                columns = [Book.title, Book.author, Book.isbn]
                if len(term) >= 5:
                    columns.append(Book.description)
            query = query.filter(or_(*(column.ilike(pattern, escape="\\") for column in columns)))
        if category_id:
            query = query.filter(Book.category_id == category_id)
        if available is True:
            query = query.filter(Book.available > 0)
        elif available is False:
            query = query.filter(Book.available == 0)

        total = query.count()

        if sort_by == "popular":
            loan_counts = (
                self.db.query(Loan.book_id, func.count(Loan.id).label("loan_count"))
                .group_by(Loan.book_id)
                .subquery()
            )
            order_column = func.coalesce(loan_counts.c.loan_count, 0)
            query = query.outerjoin(loan_counts, loan_counts.c.book_id == Book.id)
        else:
            order_column = getattr(Book, sort_by)
        query = query.order_by(order_column.desc() if sort_order == "desc" else order_column.asc(), Book.id.asc())

        books = query.offset((page - 1) * limit).limit(limit).all()
        return {
            "books": books,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }

    def get(self, scope: TenantScope, book_id: str) -> Book:
        book = self.db.get(Book, book_id)
        if book is None or not scope.owns(book.tenant_id):
            raise NotFoundError("Book not found.")
        return book

    def _check_category(self, tenant_id: str, category_id: str | None) -> None:
        if category_id is None:
            return
        category = self.db.get(Category, category_id)
        if category is None or category.tenant_id != tenant_id:
            raise ValidationError("Unknown category.")

    def create(self, scope: TenantScope, data: dict[str, Any]) -> Book:
        tenant_id = scope.require_tenant()
        title = escape_text(data.get("title"))
        author = escape_text(data.get("author"))
        if not title or not author:
            raise ValidationError("Title and author are required.")
        self._check_category(tenant_id, data.get("category_id"))

        quantity = clamp(int(data.get("quantity") or 1), 1, MAX_QUANTITY)
        book = Book(
            tenant_id=tenant_id,
            title=title,
            author=author,
            isbn=normalize_isbn(data.get("isbn")),
            description=escape_text(data.get("description")) or None,
            quantity=quantity,
            available=quantity,
            category_id=data.get("category_id"),
            cover_image=data.get("cover_image"),
        )
        self.db.add(book)
        self.commit()
        self.db.refresh(book)
        return book

    def update(self, scope: TenantScope, book_id: str, data: dict[str, Any]) -> Book:
        book = self.get(scope, book_id)
        for attr in ("title", "author", "description"):
            if data.get(attr) is not None:
                setattr(book, attr, escape_text(data[attr]))
        if "isbn" in data and data["isbn"] is not None:
            book.isbn = normalize_isbn(data["isbn"])
        if data.get("category_id") is not None:
            self._check_category(book.tenant_id, data["category_id"])
            book.category_id = data["category_id"]
        if data.get("cover_image") is not None:
            book.cover_image = data["cover_image"]
        if data.get("quantity") is not None:
            quantity = clamp(int(data["quantity"]), 1, MAX_QUANTITY)
            on_loan = book.quantity - book.available
            if quantity < on_loan:
                raise ConflictError(f"{on_loan} copies are on loan; quantity cannot go below that.")
            book.available = max(0, book.available + (quantity - book.quantity))
            book.quantity = quantity
        self.commit()
        self.db.refresh(book)
        return book

    def remove(self, scope: TenantScope, book_id: str) -> None:
        book = self.get(scope, book_id)
        active = (
            self.db.query(func.count(Loan.id))
            .filter(Loan.book_id == book.id, Loan.status == LoanStatus.ACTIVE)
            .scalar()
        )
        if active:
            raise ConflictError("This book has active loans and cannot be deleted.")
        self.db.query(Loan).filter(Loan.book_id == book.id).delete(synchronize_session=False)
        self.db.query(Favorite).filter(Favorite.book_id == book.id).delete(synchronize_session=False)
        self.db.delete(book)
        self.commit()

    def parse_csv(self, content: str) -> list[dict[str, Any]]:
        """Parse a CSV export into book rows; headers may be English or Turkish."""
        if len(content.encode("utf-8")) > CSV_MAX_BYTES:
            raise ValidationError(f"CSV file is too large. Maximum {CSV_MAX_BYTES // 1024}KB.")
        rows = [row for row in csv.reader(io.StringIO(content)) if any(cell.strip() for cell in row)]
        if len(rows) < 2:
            raise ValidationError("CSV must contain a header row and at least one data row.")
        if len(rows) > CSV_MAX_ROWS + 1:
            raise ValidationError(f"CSV has too many rows. Maximum {CSV_MAX_ROWS} books.")

        headers = [cell.strip().lower() for cell in rows[0]]
        index: dict[str, int] = {}
        for key, aliases in _CSV_HEADERS.items():
            for position, header in enumerate(headers):
                if header in aliases:
                    index[key] = position
                    break
        if "title" not in index or "author" not in index:
            raise ValidationError("CSV needs 'title' and 'author' columns.")

        def _cell(row: list[str], key: str) -> str:
            position = index.get(key)
            if position is None or position >= len(row):
                return ""
            return row[position].strip()

        books = []
        for row in rows[1:]:
            try:
                quantity = int(_cell(row, "quantity") or 1)
            except ValueError:
                quantity = 1
            books.append(
                {
                    "title": sanitize_text(_cell(row, "title")),
                    "author": sanitize_text(_cell(row, "author")),
                    "isbn": normalize_isbn(_cell(row, "isbn")),
                    "description": sanitize_text(_cell(row, "description")),
                    "quantity": clamp(quantity, 1, MAX_QUANTITY),
                    "category_slug": _cell(row, "category").lower() or None,
                }
            )
        return books

    def bulk_create(self, scope: TenantScope, rows: list[dict[str, Any]]) -> ImportResult:
        """Insert parsed rows in one transaction; invalid rows are reported, not inserted."""
        tenant_id = scope.require_tenant()
        result = ImportResult()
        categories = {
            slug: category_id
            for category_id, slug in self.db.query(Category.id, Category.slug).filter(Category.tenant_id == tenant_id)
        }
        existing_isbns = {
            isbn
            for (isbn,) in self.db.query(Book.isbn).filter(Book.tenant_id == tenant_id, Book.isbn.isnot(None))
        }

        valid: list[Book] = []
        for row in rows:
            if not row.get("title") or not row.get("author"):
                result.failed += 1
                result.errors.append(f"Missing title or author: {row.get('title') or 'unknown'}")
                continue
            isbn = row.get("isbn")
            if isbn and isbn in existing_isbns:
                result.failed += 1
                result.errors.append(f"ISBN already exists: {isbn}")
                continue
            category_id = None
            slug = row.get("category_slug")
            if slug:
                category_id = categories.get(slug)
                if category_id is None:
                    result.errors.append(f"Category not found: {slug} (book added without category)")
            if isbn:
                existing_isbns.add(isbn)
            quantity = clamp(int(row.get("quantity") or 1), 1, MAX_QUANTITY)
            valid.append(
                Book(
                    tenant_id=tenant_id,
                    title=escape_text(row["title"]),
                    author=escape_text(row["author"]),
                    isbn=isbn,
                    description=escape_text(row.get("description")) or None,
                    quantity=quantity,
                    available=quantity,
                    category_id=category_id,
                )
            )

        if valid:
            self.db.add_all(valid)
            self.commit()
            result.success = len(valid)
        return result

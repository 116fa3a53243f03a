"""Catalog models: categories and books."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolshelf.models.base import AuditMixin, Base, IdMixin, TenantScopedMixin


class Category(Base, IdMixin, AuditMixin, TenantScopedMixin):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_categories_tenant_slug"),)

    slug: Mapped[str] = mapped_column(String(60), nullable=False)
    # Stored HTML-escaped, so the value can outgrow the request limit.
    name: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(60))
    color: Mapped[str | None] = mapped_column(String(20))

    books = relationship("Book", back_populates="category")


class Book(Base, IdMixin, AuditMixin, TenantScopedMixin):
    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("available >= 0", name="ck_books_available_non_negative"),
        CheckConstraint("available <= quantity", name="ck_books_available_within_quantity"),
        Index("idx_books_tenant_category", "tenant_id", "category_id"),
    )

    category_id: Mapped[str | None] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"))
    title: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    isbn: Mapped[str | None] = mapped_column(String(20))
    description: Mapped[str | None] = mapped_column(Text)
    cover_image: Mapped[str | None] = mapped_column(String(500))
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    available: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    category = relationship("Category", back_populates="books")
    loans = relationship("Loan", back_populates="book")

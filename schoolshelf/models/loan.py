"""Loan and favorite models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolshelf.core.enums import LoanStatus
from schoolshelf.models.base import AuditMixin, Base, IdMixin, TenantScopedMixin, utcnow


class Loan(Base, IdMixin, AuditMixin, TenantScopedMixin):
    __tablename__ = "loans"
    __table_args__ = (
        Index("idx_loans_tenant_status", "tenant_id", "status"),
        Index("idx_loans_member_status", "member_id", "status"),
    )

    member_id: Mapped[str] = mapped_column(ForeignKey("memberships.id", ondelete="RESTRICT"), nullable=False)
    book_id: Mapped[str] = mapped_column(ForeignKey("books.id", ondelete="RESTRICT"), nullable=False)
    status: Mapped[LoanStatus] = mapped_column(
        Enum(LoanStatus, name="loan_status", native_enum=False), default=LoanStatus.ACTIVE, nullable=False
    )
    borrowed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    due_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    returned_at: Mapped[datetime | None] = mapped_column(DateTime)
    renew_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    fine_amount: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    fine_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    book = relationship("Book", back_populates="loans")
    member = relationship("Membership")


class Favorite(Base, IdMixin, AuditMixin, TenantScopedMixin):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("member_id", "book_id", name="uq_favorites_member_book"),)

    member_id: Mapped[str] = mapped_column(ForeignKey("memberships.id", ondelete="CASCADE"), nullable=False)
    book_id: Mapped[str] = mapped_column(ForeignKey("books.id", ondelete="CASCADE"), nullable=False)

    book = relationship("Book")

"""Tenant (school) model module."""

from __future__ import annotations

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolshelf.models.base import AuditMixin, Base, IdMixin


class Tenant(Base, IdMixin, AuditMixin):
    __tablename__ = "tenants"

    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500))
    phone: Mapped[str | None] = mapped_column(String(40))
    email: Mapped[str | None] = mapped_column(String(320))
    logo: Mapped[str | None] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    settings = relationship("TenantSettings", back_populates="tenant", uselist=False)


class TenantSettings(Base, IdMixin, AuditMixin):
    """Per-tenant loan rules, created lazily with defaults."""

    __tablename__ = "tenant_settings"

    tenant_id: Mapped[str] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    loan_days: Mapped[int] = mapped_column(Integer, default=14, nullable=False)
    max_loans: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    max_renewals: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    fine_per_day: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    max_fine: Mapped[float] = mapped_column(Float, default=50.0, nullable=False)

    tenant = relationship("Tenant", back_populates="settings")

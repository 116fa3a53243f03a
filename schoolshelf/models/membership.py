"""Membership (user) model module."""

from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Enum, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolshelf.core.enums import MembershipStatus, Role
from schoolshelf.models.base import AuditMixin, Base, IdMixin


class Membership(Base, IdMixin, AuditMixin):
    """Join of an external identity to a tenant, with role and approval status."""

    __tablename__ = "memberships"
    __table_args__ = (
        CheckConstraint(
            "NOT (role = 'MEMBER' AND status = 'APPROVED' AND tenant_id IS NULL)",
            name="ck_memberships_approved_member_has_tenant",
        ),
        CheckConstraint(
            "role != 'DEVELOPER' OR tenant_id IS NULL",
            name="ck_memberships_developer_without_tenant",
        ),
        Index("idx_memberships_tenant_status", "tenant_id", "status"),
        Index("idx_memberships_tenant_student_number", "tenant_id", "student_number"),
        Index(
            "uq_memberships_main_admin",
            "tenant_id",
            unique=True,
            sqlite_where=text("is_main_admin = 1"),
            postgresql_where=text("is_main_admin"),
        ),
    )

    identity_ref: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    tenant_id: Mapped[str | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="membership_role", native_enum=False), default=Role.MEMBER, nullable=False
    )
    status: Mapped[MembershipStatus] = mapped_column(
        Enum(MembershipStatus, name="membership_status", native_enum=False),
        default=MembershipStatus.PENDING,
        nullable=False,
    )
    is_main_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    class_name: Mapped[str | None] = mapped_column(String(10))
    section: Mapped[str | None] = mapped_column(String(10))
    student_number: Mapped[str | None] = mapped_column(String(20))

    tenant = relationship("Tenant")

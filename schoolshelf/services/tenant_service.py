"""Tenant directory: schools, their admins and loan settings."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func

from schoolshelf.core.enums import LoanStatus, MembershipStatus, Role
from schoolshelf.core.exceptions import ConflictError, NotFoundError, ValidationError
from schoolshelf.models import Book, Category, Loan, Membership, Tenant, TenantSettings
from schoolshelf.models.base import utcnow
from schoolshelf.services.base_service import BaseService
from schoolshelf.utils.validators import is_valid_slug, strip_tags

logger = logging.getLogger(__name__)

_TENANT_FIELDS = ("name", "slug", "address", "phone", "email", "logo", "is_active")
_SETTINGS_FIELDS = ("loan_days", "max_loans", "max_renewals", "fine_per_day", "max_fine")


class TenantService(BaseService):
    """Service for tenant CRUD, admin assignment and per-tenant settings."""

    def list_public(self) -> list[Tenant]:
        return self.db.query(Tenant).filter(Tenant.is_active.is_(True)).order_by(Tenant.name.asc()).all()

    def list_all(self) -> list[tuple[Tenant, dict[str, int]]]:
        tenants = self.db.query(Tenant).order_by(Tenant.name.asc()).all()
        return [(tenant, self.counts(tenant.id)) for tenant in tenants]

    def get(self, tenant_id: str) -> Tenant:
        tenant = self.db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("School not found.")
        return tenant

    def get_by_slug(self, slug: str) -> Tenant | None:
        return self.db.query(Tenant).filter(Tenant.slug == slug).first()

    def exists(self, tenant_id: str) -> bool:
        return self.db.get(Tenant, tenant_id) is not None

    def counts(self, tenant_id: str) -> dict[str, int]:
        def _count(model: Any) -> int:
            return int(
                self.db.query(func.count(model.id)).filter(model.tenant_id == tenant_id).scalar() or 0
            )

        return {
            "members": _count(Membership),
            "books": _count(Book),
            "categories": _count(Category),
            "loans": _count(Loan),
        }

    def create(self, data: dict[str, Any]) -> Tenant:
        slug = str(data.get("slug", "")).strip().lower()
        if not is_valid_slug(slug):
            raise ValidationError("Slug may only contain lowercase letters, digits and dashes.")
        if self.get_by_slug(slug) is not None:
            raise ConflictError("This slug is already in use.")

        tenant = Tenant(
            slug=slug,
            name=strip_tags(data.get("name"), max_len=255),
            address=data.get("address"),
            phone=data.get("phone"),
            email=data.get("email"),
            logo=data.get("logo"),
            is_active=bool(data.get("is_active", True)),
        )
        if not tenant.name:
            raise ValidationError("School name is required.")
        self.db.add(tenant)
        self.commit()
        self.db.refresh(tenant)
        logger.info("tenant.created", extra={"event": "tenant.created", "tenant_id": tenant.id})
        return tenant

    def update(self, tenant_id: str, data: dict[str, Any]) -> Tenant:
        tenant = self.get(tenant_id)

        new_slug = data.get("slug")
        if new_slug is not None:
            new_slug = str(new_slug).strip().lower()
            if not is_valid_slug(new_slug):
                raise ValidationError("Slug may only contain lowercase letters, digits and dashes.")
            if new_slug != tenant.slug and self.get_by_slug(new_slug) is not None:
                raise ConflictError("This slug is already in use.")
            data = {**data, "slug": new_slug}

        for field in _TENANT_FIELDS:
            if field in data and data[field] is not None:
                setattr(tenant, field, data[field])
        self.commit()
        self.db.refresh(tenant)
        return tenant

    def deactivate(self, tenant_id: str) -> Tenant:
        return self.update(tenant_id, {"is_active": False})

    def remove(self, tenant_id: str) -> None:
        """Hard-delete an empty tenant; referenced tenants must be deactivated instead."""
        tenant = self.get(tenant_id)
        counts = self.counts(tenant_id)
        if counts["members"] or counts["books"] or counts["loans"]:
            raise ConflictError("This school still has data; deactivate it instead.")
        self.db.query(Category).filter(Category.tenant_id == tenant_id).delete(synchronize_session=False)
        self.db.query(TenantSettings).filter(TenantSettings.tenant_id == tenant_id).delete(
            synchronize_session=False
        )
        self.db.delete(tenant)
        self.commit()

    def assign_admin(self, tenant_id: str, email: str, is_main_admin: bool = True) -> Membership:
        """Promote an existing membership to admin of `tenant_id`."""
        self.get(tenant_id)
        membership = self.db.query(Membership).filter(Membership.email == email.strip().lower()).first()
        if membership is None:
            raise NotFoundError("No user with this email address.")
        if membership.role is Role.DEVELOPER:
            raise ConflictError("A developer account cannot be assigned to a school.")

        if is_main_admin:
            self.db.query(Membership).filter(
                Membership.tenant_id == tenant_id,
                Membership.is_main_admin.is_(True),
                Membership.id != membership.id,
            ).update({Membership.is_main_admin: False}, synchronize_session="fetch")

        membership.tenant_id = tenant_id
        membership.role = Role.ADMIN
        membership.status = MembershipStatus.APPROVED
        membership.is_main_admin = is_main_admin
        self.commit()
        self.db.refresh(membership)
        return membership

    def list_admins(self, tenant_id: str) -> list[Membership]:
        self.get(tenant_id)
        return (
            self.db.query(Membership)
            .filter(Membership.tenant_id == tenant_id, Membership.role == Role.ADMIN)
            .order_by(Membership.is_main_admin.desc(), Membership.created_at.asc())
            .all()
        )

    def stats(self, tenant_id: str) -> dict[str, int]:
        self.get(tenant_id)

        def _members(role: Role) -> int:
            return int(
                self.db.query(func.count(Membership.id))
                .filter(Membership.tenant_id == tenant_id, Membership.role == role)
                .scalar()
                or 0
            )

        active_loans = self.db.query(func.count(Loan.id)).filter(
            Loan.tenant_id == tenant_id, Loan.status == LoanStatus.ACTIVE
        )
        counts = self.counts(tenant_id)
        return {
            "total_books": counts["books"],
            "total_book_quantity": int(
                self.db.query(func.coalesce(func.sum(Book.quantity), 0)).filter(Book.tenant_id == tenant_id).scalar()
            ),
            "total_members": _members(Role.MEMBER),
            "total_admins": _members(Role.ADMIN),
            "active_loans": int(active_loans.scalar() or 0),
            "overdue_loans": int(active_loans.filter(Loan.due_at < utcnow()).scalar() or 0),
            "total_categories": counts["categories"],
        }

    def get_settings(self, tenant_id: str) -> TenantSettings:
        settings = self.db.query(TenantSettings).filter(TenantSettings.tenant_id == tenant_id).first()
        if settings is None:
            self.get(tenant_id)
            settings = TenantSettings(tenant_id=tenant_id)
            self.db.add(settings)
            self.commit()
            self.db.refresh(settings)
        return settings

    def update_settings(self, tenant_id: str, data: dict[str, Any]) -> TenantSettings:
        settings = self.get_settings(tenant_id)
        for field in _SETTINGS_FIELDS:
            if field in data and data[field] is not None:
                setattr(settings, field, data[field])
        self.commit()
        self.db.refresh(settings)
        return settings

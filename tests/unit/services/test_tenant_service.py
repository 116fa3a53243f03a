from __future__ import annotations

import pytest

from schoolshelf.core.enums import MembershipStatus, Role
from schoolshelf.core.exceptions import ConflictError, NotFoundError, ValidationError
from schoolshelf.models import Membership
from schoolshelf.services.tenant_service import TenantService


def test_create_tenant_and_duplicate_slug(db):
    service = TenantService(db)
    tenant = service.create({"name": "North High", "slug": "North-High"})
    assert tenant.slug == "north-high"
    assert tenant.is_active is True
    with pytest.raises(ConflictError):
        service.create({"name": "Other", "slug": "north-high"})


def test_create_tenant_rejects_bad_slug(db):
    with pytest.raises(ValidationError):
        TenantService(db).create({"name": "North High", "slug": "north high"})


def test_update_slug_to_taken_conflicts(db, make_tenant):
    make_tenant(slug="north-high")
    other = make_tenant(slug="south-high", name="South High")
    with pytest.raises(ConflictError):
        TenantService(db).update(other.id, {"slug": "north-high"})


def test_list_public_only_active(db, make_tenant):
    make_tenant(slug="open", name="Open")
    make_tenant(slug="closed", name="Closed", is_active=False)
    assert [tenant.slug for tenant in TenantService(db).list_public()] == ["open"]


def test_remove_refuses_referenced_tenant(db, make_tenant, make_membership):
    tenant = make_tenant()
    make_membership(tenant)
    service = TenantService(db)
    with pytest.raises(ConflictError):
        service.remove(tenant.id)
    assert service.deactivate(tenant.id).is_active is False


def test_remove_empty_tenant(db, make_tenant):
    tenant = make_tenant()
    service = TenantService(db)
    service.get_settings(tenant.id)
    service.remove(tenant.id)
    with pytest.raises(NotFoundError):
        service.get(tenant.id)


def test_assign_admin_moves_main_admin_flag(db, make_tenant, make_membership):
    tenant = make_tenant()
    first = make_membership(tenant, role=Role.ADMIN, is_main_admin=True)
    candidate = make_membership(None, status=MembershipStatus.PENDING, email="librarian@example.com")

    promoted = TenantService(db).assign_admin(tenant.id, "Teacher@Example.com")

    assert promoted.id == candidate.id
    assert promoted.role is Role.ADMIN
    assert promoted.status is MembershipStatus.APPROVED
    assert promoted.tenant_id == tenant.id
    assert promoted.is_main_admin is True
    db.refresh(first)
    assert first.is_main_admin is False
    main_admins = db.query(Membership).filter(Membership.tenant_id == tenant.id, Membership.is_main_admin.is_(True))
    assert main_admins.count() == 1


def test_assign_admin_unknown_email(db, make_tenant):
    tenant = make_tenant()
    with pytest.raises(NotFoundError):
        TenantService(db).assign_admin(tenant.id, "ghost@example.com")


def test_assign_admin_refuses_developer(db, make_tenant, make_membership):
    tenant = make_tenant()
    make_membership(None, role=Role.DEVELOPER, email="dev@example.com")
    with pytest.raises(ConflictError):
        TenantService(db).assign_admin(tenant.id, "dev@example.com")


def test_settings_defaults_and_update(db, make_tenant):
    tenant = make_tenant()
    service = TenantService(db)
    settings = service.get_settings(tenant.id)
    assert (settings.loan_days, settings.max_loans, settings.max_renewals) == (14, 3, 2)
    updated = service.update_settings(tenant.id, {"loan_days": 21, "max_fine": None})
    assert updated.loan_days == 21
    assert updated.max_fine == 50.0


def test_stats_counts(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    make_membership(tenant)
    make_membership(tenant, role=Role.ADMIN)
    make_book(tenant, quantity=3)
    stats = TenantService(db).stats(tenant.id)
    assert stats["total_members"] == 1
    assert stats["total_admins"] == 1
    assert stats["total_books"] == 1
    assert stats["total_book_quantity"] == 3
    assert stats["active_loans"] == 0

from __future__ import annotations

import pytest

from schoolshelf.auth.tenant_context import TenantScope
from schoolshelf.core.enums import MembershipStatus, Role
from schoolshelf.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from schoolshelf.services.membership_service import MembershipService, StudentInfo


def _info(email: str = "new@example.com", student_number: str = "4242") -> StudentInfo:
    return StudentInfo(
        name="Ada Lovelace",
        email=email,
        class_name="10",
        section="b",
        student_number=student_number,
    )


def _admin_scope(tenant) -> TenantScope:
    return TenantScope(role=Role.ADMIN, tenant_id=tenant.id)


def test_register_creates_pending_membership(db, make_tenant, make_identity):
    tenant = make_tenant()
    membership = MembershipService(db).register(make_identity(), tenant.slug, _info())
    assert membership.status is MembershipStatus.PENDING
    assert membership.role is Role.MEMBER
    assert membership.tenant_id == tenant.id
    assert membership.section == "B"


def test_register_twice_conflicts(db, make_tenant, make_identity):
    tenant = make_tenant()
    service = MembershipService(db)
    service.register(make_identity(), tenant.slug, _info())
    with pytest.raises(ConflictError):
        service.register(make_identity(), tenant.slug, _info())


def test_rejected_identity_cannot_register_again(db, make_tenant, make_membership, make_identity):
    tenant = make_tenant()
    make_membership(tenant, status=MembershipStatus.REJECTED, identity_ref="uid-new")
    with pytest.raises(AuthorizationError):
        MembershipService(db).register(make_identity(), tenant.slug, _info())


def test_register_validations(db, make_tenant, make_identity):
    tenant = make_tenant()
    make_tenant(slug="closed", name="Closed", is_active=False)
    service = MembershipService(db)
    with pytest.raises(NotFoundError):
        service.register(make_identity(), "missing", _info())
    with pytest.raises(ValidationError):
        service.register(make_identity(), "closed", _info())
    with pytest.raises(ValidationError):
        service.register(make_identity(), tenant.slug, _info(student_number="12a"))
    with pytest.raises(ValidationError):
        service.register(make_identity(), tenant.slug, _info(email="other@example.com"))


def test_student_number_is_unique_per_tenant(db, make_tenant, make_identity):
    tenant = make_tenant()
    service = MembershipService(db)
    service.register(make_identity("uid-a", "a@example.com"), tenant.slug, _info("a@example.com"))
    with pytest.raises(ConflictError):
        service.register(make_identity("uid-b", "b@example.com"), tenant.slug, _info("b@example.com"))


def test_approve_then_profile_shows_tenant(db, make_tenant, make_identity):
    tenant = make_tenant()
    service = MembershipService(db)
    pending = service.register(make_identity(), tenant.slug, _info())
    approved = service.approve(_admin_scope(tenant), pending.id)
    assert approved.status is MembershipStatus.APPROVED
    profile = service.get_profile("uid-new")
    assert profile.tenant.slug == tenant.slug


def test_approve_approved_conflicts(db, make_tenant, make_membership):
    tenant = make_tenant()
    member = make_membership(tenant, status=MembershipStatus.APPROVED)
    with pytest.raises(ConflictError):
        MembershipService(db).approve(_admin_scope(tenant), member.id)


def test_rejected_can_be_reapproved(db, make_tenant, make_membership):
    tenant = make_tenant()
    member = make_membership(tenant, status=MembershipStatus.PENDING)
    service = MembershipService(db)
    assert service.reject(_admin_scope(tenant), member.id).status is MembershipStatus.REJECTED
    assert service.approve(_admin_scope(tenant), member.id).status is MembershipStatus.APPROVED


def test_admin_cannot_approve_other_tenant(db, make_tenant, make_membership):
    tenant = make_tenant()
    other = make_tenant(slug="south-high", name="South High")
    member = make_membership(other, status=MembershipStatus.PENDING)
    with pytest.raises(AuthorizationError):
        MembershipService(db).approve(_admin_scope(tenant), member.id)


def test_list_pending_is_scoped(db, make_tenant, make_membership):
    tenant = make_tenant()
    other = make_tenant(slug="south-high", name="South High")
    mine = make_membership(tenant, status=MembershipStatus.PENDING)
    make_membership(other, status=MembershipStatus.PENDING)
    make_membership(tenant, status=MembershipStatus.APPROVED)
    pending = MembershipService(db).list_pending(_admin_scope(tenant))
    assert [item.id for item in pending] == [mine.id]


def test_bulk_approve_reports_per_id(db, make_tenant, make_membership):
    tenant = make_tenant()
    first = make_membership(tenant, status=MembershipStatus.PENDING)
    second = make_membership(tenant, status=MembershipStatus.APPROVED)
    result = MembershipService(db).bulk_approve(_admin_scope(tenant), [first.id, second.id, "missing"])
    assert result.success == 1
    assert result.failed == 2
    assert len(result.errors) == 2


def test_select_tenant_moves_member_to_pending(db, make_tenant, make_membership):
    tenant = make_tenant()
    member = make_membership(None, status=MembershipStatus.PENDING, identity_ref="uid-onboard")
    updated = MembershipService(db).select_tenant(
        "uid-onboard",
        tenant.id,
        StudentInfo(name=member.name, email=member.email, class_name="8", section="c", student_number="77"),
    )
    assert updated.tenant_id == tenant.id
    assert updated.status is MembershipStatus.PENDING


def test_update_profile_strips_markup(db, make_tenant, make_membership):
    tenant = make_tenant()
    make_membership(tenant, identity_ref="uid-p")
    updated = MembershipService(db).update_profile("uid-p", name="<b>Grace</b>", section="c")
    assert updated.name == "Grace"
    assert updated.section == "C"


def test_member_detail_includes_loan_stats(db, make_tenant, make_membership):
    tenant = make_tenant()
    member = make_membership(tenant)
    detail = MembershipService(db).member_detail(_admin_scope(tenant), member.id)
    assert detail["user"].id == member.id
    assert detail["stats"]["total_loans"] == 0
    assert detail["loan_history"] == []

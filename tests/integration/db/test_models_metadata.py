from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from schoolshelf.core.enums import MembershipStatus, Role
from schoolshelf.models import Base, Book, Membership


def test_model_metadata_contains_target_tables():
    expected = {"tenants", "tenant_settings", "memberships", "categories", "books", "loans", "favorites"}
    assert expected.issubset(set(Base.metadata.tables.keys()))


def test_approved_member_without_tenant_is_rejected_by_database(db):
    db.add(
        Membership(
            identity_ref="uid-x",
            email="x@example.com",
            name="No School",
            tenant_id=None,
            role=Role.MEMBER,
            status=MembershipStatus.APPROVED,
        )
    )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_developer_with_tenant_is_rejected_by_database(db, make_tenant):
    tenant = make_tenant()
    db.add(
        Membership(
            identity_ref="uid-dev",
            email="dev@example.com",
            name="Dev",
            tenant_id=tenant.id,
            role=Role.DEVELOPER,
            status=MembershipStatus.APPROVED,
        )
    )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_second_main_admin_is_rejected_by_database(db, make_tenant, make_membership):
    tenant = make_tenant()
    make_membership(tenant, role=Role.ADMIN, is_main_admin=True)
    with pytest.raises(IntegrityError):
        make_membership(tenant, role=Role.ADMIN, is_main_admin=True)
    db.rollback()


def test_available_cannot_go_negative(db, make_tenant, make_book):
    book = make_book(make_tenant())
    book.available = -1
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_available_cannot_exceed_quantity(db, make_tenant):
    tenant = make_tenant()
    db.add(Book(tenant_id=tenant.id, title="T", author="A", quantity=1, available=2))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

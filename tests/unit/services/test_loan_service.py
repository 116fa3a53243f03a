from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from schoolshelf.auth.tenant_context import TenantScope
from schoolshelf.core.enums import LoanStatus, MembershipStatus, Role
from schoolshelf.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from schoolshelf.models import Book, Loan, Membership
from schoolshelf.models.base import utcnow
from schoolshelf.services.loan_service import LoanService, calculate_fine
from schoolshelf.services.tenant_service import TenantService


def _scope(tenant) -> TenantScope:
    return TenantScope(role=Role.MEMBER, tenant_id=tenant.id)


def test_calculate_fine_counts_started_days_and_caps():
    due = datetime(2026, 3, 1, 12, 0, 0)
    assert calculate_fine(due, due, 1.0, 50.0) == 0.0
    assert calculate_fine(due, due + timedelta(hours=1), 1.0, 50.0) == 1.0
    assert calculate_fine(due, due + timedelta(days=3, minutes=1), 2.5, 50.0) == 10.0
    assert calculate_fine(due, due + timedelta(days=365), 1.0, 50.0) == 50.0


def test_borrow_last_copy_sets_available_zero(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    member = make_membership(tenant)
    book = make_book(tenant, quantity=1)

    loan = LoanService(db).borrow(_scope(tenant), member, book.id)

    assert loan.status is LoanStatus.ACTIVE
    assert loan.due_at - loan.borrowed_at == timedelta(days=14)
    db.refresh(book)
    assert book.available == 0


def test_second_borrow_of_last_copy_fails_without_going_negative(
    isolated_session_factory, db, make_tenant, make_membership, make_book
):
    tenant = make_tenant()
    first = make_membership(tenant)
    second = make_membership(tenant)
    book = make_book(tenant, quantity=1)

    other_session = isolated_session_factory()
    try:
        # Both sessions loaded the book while a copy was still free.
        assert other_session.get(Book, book.id).available == 1
        LoanService(db).borrow(_scope(tenant), first, book.id)
        with pytest.raises(ConflictError):
            LoanService(other_session).borrow(_scope(tenant), other_session.get(Membership, second.id), book.id)
    finally:
        other_session.close()

    db.expire_all()
    assert db.get(Book, book.id).available == 0
    assert db.query(Loan).filter(Loan.book_id == book.id).count() == 1


def test_same_book_cannot_be_borrowed_twice_by_member(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    member = make_membership(tenant)
    book = make_book(tenant, quantity=3)
    service = LoanService(db)
    service.borrow(_scope(tenant), member, book.id)
    with pytest.raises(ConflictError):
        service.borrow(_scope(tenant), member, book.id)


def test_max_loans_limit(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    TenantService(db).update_settings(tenant.id, {"max_loans": 1})
    member = make_membership(tenant)
    service = LoanService(db)
    service.borrow(_scope(tenant), member, make_book(tenant, title="One").id)
    with pytest.raises(ConflictError):
        service.borrow(_scope(tenant), member, make_book(tenant, title="Two").id)


def test_pending_member_cannot_borrow(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    member = make_membership(tenant, status=MembershipStatus.PENDING)
    with pytest.raises(AuthorizationError):
        LoanService(db).borrow(_scope(tenant), member, make_book(tenant).id)


def test_borrow_book_of_other_tenant_is_not_found(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    other = make_tenant(slug="south-high", name="South High")
    member = make_membership(tenant)
    with pytest.raises(NotFoundError):
        LoanService(db).borrow(_scope(tenant), member, make_book(other).id)


def test_overdue_return_sets_capped_fine(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    member = make_membership(tenant)
    book = make_book(tenant)
    service = LoanService(db)
    loan = service.borrow(_scope(tenant), member, book.id)
    loan.due_at = utcnow() - timedelta(days=100)
    db.commit()

    returned = service.return_loan(member, loan.id)

    assert returned.status is LoanStatus.RETURNED
    assert returned.returned_at is not None
    assert returned.fine_amount == 50.0
    db.refresh(book)
    assert book.available == 1

    fines = service.unpaid_fines(member)
    assert fines["total_fine"] == 50.0
    paid = service.mark_fine_paid(TenantScope(role=Role.ADMIN, tenant_id=tenant.id), loan.id)
    assert paid.fine_paid is True
    assert service.unpaid_fines(member)["total_fine"] == 0.0


def test_renew_extends_due_date_until_limit(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    member = make_membership(tenant)
    service = LoanService(db)
    loan = service.borrow(_scope(tenant), member, make_book(tenant).id)
    original_due = loan.due_at

    renewed = service.renew(member, loan.id)
    assert renewed.due_at == original_due + timedelta(days=14)
    service.renew(member, loan.id)
    with pytest.raises(ConflictError):
        service.renew(member, loan.id)


def test_overdue_loan_cannot_be_renewed(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    member = make_membership(tenant)
    service = LoanService(db)
    loan = service.borrow(_scope(tenant), member, make_book(tenant).id)
    loan.due_at = utcnow() - timedelta(days=1)
    db.commit()
    with pytest.raises(ConflictError):
        service.renew(member, loan.id)


def test_reading_history_totals(db, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    member = make_membership(tenant)
    service = LoanService(db)
    first = service.borrow(_scope(tenant), member, make_book(tenant, title="A").id)
    service.borrow(_scope(tenant), member, make_book(tenant, title="B").id)
    service.return_loan(member, first.id)

    history = service.reading_history(member)
    assert history["stats"]["total_loans"] == 2
    assert history["stats"]["completed_loans"] == 1
    assert history["stats"]["active_loans"] == 1
    assert history["top_categories"] == []

"""Loan service: borrow, return, renew and fines."""

from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, update

from schoolshelf.auth.tenant_context import TenantScope
from schoolshelf.core.enums import LoanStatus, MembershipStatus
from schoolshelf.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from schoolshelf.models import Book, Loan, Membership
from schoolshelf.models.base import utcnow
from schoolshelf.services.base_service import BaseService
from schoolshelf.services.tenant_service import TenantService

logger = logging.getLogger(__name__)


def calculate_fine(due_at: datetime, now: datetime, fine_per_day: float, max_fine: float) -> float:
    """Started overdue days times the daily fine, capped at `max_fine`."""
    if now <= due_at:
        return 0.0
    overdue_days = math.ceil((now - due_at).total_seconds() / 86400)
    return float(min(overdue_days * fine_per_day, max_fine))


class LoanService(BaseService):
    """Service for loans of catalog items within one tenant."""

    def _member_loan(self, member: Membership, loan_id: str) -> Loan:
        loan = (
            self.db.query(Loan)
            .filter(Loan.id == loan_id, Loan.member_id == member.id, Loan.status == LoanStatus.ACTIVE)
            .first()
        )
        if loan is None:
            raise NotFoundError("Loan not found.")
        return loan

    def borrow(self, scope: TenantScope, member: Membership, book_id: str) -> Loan:
        """Lend one copy of `book_id` to `member`.

        The availability decrement is a conditional UPDATE; when it matches no
        row the last copy was taken by someone else and nothing is written.
        """
        tenant_id = scope.require_tenant()
        if member.tenant_id != tenant_id or member.status is not MembershipStatus.APPROVED:
            raise AuthorizationError("You are not an approved member of this school.")

        settings = TenantService(self.db).get_settings(tenant_id)
        active_count = (
            self.db.query(func.count(Loan.id))
            .filter(Loan.member_id == member.id, Loan.status == LoanStatus.ACTIVE)
            .scalar()
        )
        if active_count >= settings.max_loans:
            raise ConflictError(f"You can borrow at most {settings.max_loans} books.")

        book = self.db.get(Book, book_id)
        if book is None or book.tenant_id != tenant_id:
            raise NotFoundError("Book not found.")

        duplicate = (
            self.db.query(Loan.id)
            .filter(Loan.member_id == member.id, Loan.book_id == book.id, Loan.status == LoanStatus.ACTIVE)
            .first()
        )
        if duplicate is not None:
            raise ConflictError("You already borrowed this book.")

        result = self.db.execute(
            update(Book)
            .where(Book.id == book.id, Book.tenant_id == tenant_id, Book.available > 0)
            .values(available=Book.available - 1)
        )
        if result.rowcount != 1:
            self.rollback()
            raise ConflictError("This book is not available right now.")

        now = utcnow()
        loan = Loan(
            tenant_id=tenant_id,
            member_id=member.id,
            book_id=book.id,
            status=LoanStatus.ACTIVE,
            borrowed_at=now,
            due_at=now + timedelta(days=settings.loan_days),
        )
        self.db.add(loan)
        self.commit()
        self.db.refresh(loan)
        logger.info(
            "loan.created",
            extra={"event": "loan.created", "tenant_id": tenant_id, "membership_id": member.id},
        )
        return loan

    def return_loan(self, member: Membership, loan_id: str) -> Loan:
        loan = self._member_loan(member, loan_id)
        settings = TenantService(self.db).get_settings(loan.tenant_id)
        now = utcnow()

        self.db.execute(
            update(Book)
            .where(Book.id == loan.book_id, Book.available < Book.quantity)
            .values(available=Book.available + 1)
        )
        loan.status = LoanStatus.RETURNED
        loan.returned_at = now
        loan.fine_amount = calculate_fine(loan.due_at, now, settings.fine_per_day, settings.max_fine)
        self.commit()
        self.db.refresh(loan)
        return loan

    def renew(self, member: Membership, loan_id: str) -> Loan:
        loan = self._member_loan(member, loan_id)
        settings = TenantService(self.db).get_settings(loan.tenant_id)

        if loan.renew_count >= settings.max_renewals:
            raise ConflictError(f"A loan can be renewed at most {settings.max_renewals} times.")
        if utcnow() > loan.due_at:
            raise ConflictError("Overdue loans cannot be renewed. Please return the book first.")

        loan.due_at = loan.due_at + timedelta(days=settings.loan_days)
        loan.renew_count += 1
        self.commit()
        self.db.refresh(loan)
        return loan

    def my_loans(self, member: Membership) -> list[Loan]:
        return (
            self.db.query(Loan)
            .filter(Loan.member_id == member.id)
            .order_by(Loan.borrowed_at.desc())
            .all()
        )

    def unpaid_fines(self, member: Membership) -> dict[str, Any]:
        loans = (
            self.db.query(Loan)
            .filter(Loan.member_id == member.id, Loan.fine_amount > 0, Loan.fine_paid.is_(False))
            .all()
        )
        return {"loans": loans, "total_fine": float(sum(loan.fine_amount for loan in loans))}

    def mark_fine_paid(self, scope: TenantScope, loan_id: str) -> Loan:
        query = self.db.query(Loan).filter(Loan.id == loan_id, Loan.fine_amount > 0)
        loan = scope.apply(query, Loan).first()
        if loan is None:
            raise NotFoundError("No fined loan with this id.")
        loan.fine_paid = True
        self.commit()
        self.db.refresh(loan)
        return loan

    def reading_history(self, member: Membership) -> dict[str, Any]:
        loans = self.my_loans(member)
        now = utcnow()
        active = [loan for loan in loans if loan.status is LoanStatus.ACTIVE]

        categories: Counter[str] = Counter()
        names: dict[str, tuple[str, str | None]] = {}
        for loan in loans:
            category = loan.book.category
            if category is not None:
                categories[category.id] += 1
                names[category.id] = (category.name, category.color)

        return {
            "stats": {
                "total_loans": len(loans),
                "completed_loans": sum(1 for loan in loans if loan.status is LoanStatus.RETURNED),
                "active_loans": len(active),
                "overdue_count": sum(1 for loan in active if loan.due_at < now),
                "total_fines": float(sum(loan.fine_amount for loan in loans)),
                "unpaid_fines": float(sum(loan.fine_amount for loan in loans if not loan.fine_paid)),
            },
            "top_categories": [
                {"name": names[category_id][0], "color": names[category_id][1], "count": count}
                for category_id, count in categories.most_common(5)
            ],
            "loans": loans,
        }

"""Loan endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from schoolshelf.core.dependencies import Caller, get_db_session, require_scope
from schoolshelf.core.enums import AccessArea, AuditAction
from schoolshelf.core.logging import audit
from schoolshelf.schemas import FinesResponse, LoanResponse, ReadingHistoryResponse
from schoolshelf.services.loan_service import LoanService

router = APIRouter(tags=["loans"])


@router.get("/loans/my", response_model=list[LoanResponse])
def my_loans(
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> list:
    return LoanService(db).my_loans(caller.member)


@router.get("/loans/my/fines", response_model=FinesResponse)
def my_fines(
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> dict:
    return LoanService(db).unpaid_fines(caller.member)


@router.get("/loans/reading-history", response_model=ReadingHistoryResponse)
def reading_history(
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> dict:
    return LoanService(db).reading_history(caller.member)


@router.post("/loans/{book_id}", response_model=LoanResponse, status_code=status.HTTP_201_CREATED)
def borrow(
    book_id: str,
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> LoanResponse:
    loan = LoanService(db).borrow(caller.tenant_scope, caller.member, book_id)
    audit(AuditAction.LOAN_CREATE.value, caller.log_context(), loan_id=loan.id, book_id=book_id)
    return LoanResponse.model_validate(loan)


@router.post("/loans/{loan_id}/return", response_model=LoanResponse)
def return_loan(
    loan_id: str,
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> LoanResponse:
    loan = LoanService(db).return_loan(caller.member, loan_id)
    audit(AuditAction.LOAN_RETURN.value, caller.log_context(), loan_id=loan.id, fine_amount=loan.fine_amount)
    return LoanResponse.model_validate(loan)


@router.post("/loans/{loan_id}/renew", response_model=LoanResponse)
def renew_loan(
    loan_id: str,
    caller: Caller = Depends(require_scope(AccessArea.LIBRARY)),
    db: Session = Depends(get_db_session),
) -> LoanResponse:
    return LoanResponse.model_validate(LoanService(db).renew(caller.member, loan_id))


@router.post("/loans/{loan_id}/pay-fine", response_model=LoanResponse)
def pay_fine(
    loan_id: str,
    caller: Caller = Depends(require_scope(AccessArea.ADMIN)),
    db: Session = Depends(get_db_session),
) -> LoanResponse:
    return LoanResponse.model_validate(LoanService(db).mark_fine_paid(caller.tenant_scope, loan_id))

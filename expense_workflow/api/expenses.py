"""
Expense request API endpoints.

The API layer is thin: it resolves the caller, opens a unit of
work, and delegates every rule to ExpenseService and the
ExpenseRequest entity.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from expense_workflow.api.deps import (
    CurrentUser,
    get_current_user,
    require_reviewer,
    unit_of_work,
)
from expense_workflow.config import get_settings
from expense_workflow.models.base import get_db
from expense_workflow.models.enums import ExpenseStatus
from expense_workflow.schemas.expense import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseReject,
    AttachmentAdd,
    CommentCreate,
    ExpenseQuery,
    ExpenseResponse,
    PagedExpenses,
    AuditLogResponse,
    CommentResponse,
)
from expense_workflow.services.expense_service import ExpenseService

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.post("", response_model=ExpenseResponse, status_code=201)
def create_expense(
    request: ExpenseCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new expense request in DRAFT."""
    service = ExpenseService(db)
    with unit_of_work(db):
        expense = service.create_expense(
            user.id,
            request.title,
            request.description,
            request.amount,
            request.expense_date,
            request.category_id,
        )
    return service.to_response(expense)


@router.get("", response_model=PagedExpenses)
def list_my_expenses(
    search: str | None = None,
    status: ExpenseStatus | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
    sort_by: str | None = None,
    sort_dir: str | None = None,
    page: int = 1,
    page_size: int = Query(default=get_settings().DEFAULT_PAGE_SIZE),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Search the caller's own expenses with filters, sorting and paging."""
    query = ExpenseQuery(
        search=search,
        status=status,
        from_date=from_date,
        to_date=to_date,
        min_amount=min_amount,
        max_amount=max_amount,
        sort_by=sort_by,
        sort_dir=sort_dir,
        page=page,
        page_size=page_size,
    )
    return ExpenseService(db).search_expenses(query, creator_id=user.id)


@router.get("/pending", response_model=list[ExpenseResponse])
def list_pending(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Submitted expenses awaiting review (managers and admins)."""
    require_reviewer(user)
    service = ExpenseService(db)
    return [service.to_response(e) for e in service.get_pending_expenses()]


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ExpenseService(db)
    with unit_of_work(db):
        expense = service.get_expense(expense_id)
    return service.to_response(expense)


@router.put("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: uuid.UUID,
    request: ExpenseUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Edit a draft. Only its creator may do this."""
    service = ExpenseService(db)
    with unit_of_work(db):
        expense = service.update_expense(
            expense_id,
            user.id,
            request.title,
            request.description,
            request.amount,
            request.category_id,
        )
    return service.to_response(expense)


@router.delete("/{expense_id}", status_code=204)
def delete_expense(
    expense_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        ExpenseService(db).delete_expense(expense_id, user.id)
    return Response(status_code=204)


@router.post("/{expense_id}/submit", response_model=ExpenseResponse)
def submit_expense(
    expense_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ExpenseService(db)
    with unit_of_work(db):
        expense = service.submit_expense(expense_id, user.id)
    return service.to_response(expense)


@router.post("/{expense_id}/approve", response_model=ExpenseResponse)
def approve_expense(
    expense_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Approve a submitted expense.

    Role checks happen in the domain model, so an employee calling
    this gets the same 400 the model raises for any other caller.
    """
    service = ExpenseService(db)
    with unit_of_work(db):
        expense = service.approve_expense(expense_id, user.id, user.role)
    return service.to_response(expense)


@router.post("/{expense_id}/reject", response_model=ExpenseResponse)
def reject_expense(
    expense_id: uuid.UUID,
    request: ExpenseReject,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ExpenseService(db)
    with unit_of_work(db):
        expense = service.reject_expense(
            expense_id, user.id, user.role, request.reason
        )
    return service.to_response(expense)


@router.post("/{expense_id}/attachments", response_model=ExpenseResponse)
def add_attachment(
    expense_id: uuid.UUID,
    request: AttachmentAdd,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ExpenseService(db)
    with unit_of_work(db):
        expense = service.add_attachment(
            expense_id, request.attachment_url, user_id=user.id
        )
    return service.to_response(expense)


@router.delete("/{expense_id}/attachments", response_model=ExpenseResponse)
def remove_attachment(
    expense_id: uuid.UUID,
    url: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ExpenseService(db)
    with unit_of_work(db):
        expense = service.remove_attachment(expense_id, url, user_id=user.id)
    return service.to_response(expense)


@router.get(
    "/{expense_id}/audit-history",
    response_model=list[AuditLogResponse],
)
def get_audit_history(
    expense_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Audit records of an expense, oldest first."""
    records = ExpenseService(db).get_audit_history(expense_id)
    return [AuditLogResponse.model_validate(r) for r in records]


@router.post(
    "/{expense_id}/comments",
    response_model=CommentResponse,
    status_code=201,
)
def add_comment(
    expense_id: uuid.UUID,
    request: CommentCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        comment = ExpenseService(db).add_comment(expense_id, user.id, request.text)
    return comment


@router.get("/{expense_id}/comments", response_model=list[CommentResponse])
def get_comments(
    expense_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        comments = ExpenseService(db).get_comments(expense_id)
    return comments

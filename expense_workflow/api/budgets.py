"""
Budget API endpoints.

Budgets created here belong to the caller. Utilization is computed
on every request from approved expenses.
"""

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from expense_workflow.api.deps import CurrentUser, get_current_user, unit_of_work
from expense_workflow.models.base import get_db
from expense_workflow.schemas.budget import (
    BudgetCreate,
    BudgetUpdate,
    BudgetResponse,
    BudgetStatus,
)
from expense_workflow.services.budget_service import BudgetService

router = APIRouter(prefix="/budgets", tags=["Budgets"])


@router.get("", response_model=list[BudgetResponse])
def list_budgets(
    active_only: bool = False,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BudgetService(db).get_user_budgets(user.id, active_only=active_only)


@router.get("/status", response_model=list[BudgetStatus])
def get_budget_status(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Utilization of the caller's active budgets and the global ones."""
    return BudgetService(db).get_budget_status(user.id)


@router.post("", response_model=BudgetResponse, status_code=201)
def create_budget(
    request: BudgetCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        budget = BudgetService(db).create_budget(user.id, request)
    return budget


@router.put("/{budget_id}", response_model=BudgetResponse)
def update_budget(
    budget_id: uuid.UUID,
    request: BudgetUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        budget = BudgetService(db).update_budget(budget_id, request)
    return budget


@router.post("/{budget_id}/activate", response_model=BudgetResponse)
def activate_budget(
    budget_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        budget = BudgetService(db).activate_budget(budget_id)
    return budget


@router.post("/{budget_id}/deactivate", response_model=BudgetResponse)
def deactivate_budget(
    budget_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        budget = BudgetService(db).deactivate_budget(budget_id)
    return budget


@router.delete("/{budget_id}", status_code=204)
def delete_budget(
    budget_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    with unit_of_work(db):
        BudgetService(db).delete_budget(budget_id, user.id)
    return Response(status_code=204)

"""
Expense category API endpoints.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from expense_workflow.api.deps import CurrentUser, get_current_user, unit_of_work
from expense_workflow.models.base import get_db
from expense_workflow.models.enums import UserRole
from expense_workflow.schemas.category import CategoryCreate, CategoryResponse
from expense_workflow.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])


def _require_admin(user: CurrentUser) -> None:
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=403, detail="Only admins can manage categories"
        )


@router.get("", response_model=list[CategoryResponse])
def list_categories(
    active_only: bool = True,
    db: Session = Depends(get_db),
):
    return CategoryService(db).list_categories(active_only=active_only)


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    request: CategoryCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_admin(user)
    with unit_of_work(db):
        category = CategoryService(db).create_category(request)
    return category


@router.post("/{category_id}/activate", response_model=CategoryResponse)
def activate_category(
    category_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_admin(user)
    with unit_of_work(db):
        category = CategoryService(db).activate_category(category_id)
    return category


@router.post("/{category_id}/deactivate", response_model=CategoryResponse)
def deactivate_category(
    category_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Retire a category. Existing expenses keep their reference."""
    _require_admin(user)
    with unit_of_work(db):
        category = CategoryService(db).deactivate_category(category_id)
    return category

"""
Category service: reference data for classifying expenses and budgets.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from expense_workflow.exceptions import BusinessRuleError, NotFoundError
from expense_workflow.models.category import ExpenseCategory
from expense_workflow.schemas.category import CategoryCreate

logger = logging.getLogger(__name__)


class CategoryService:

    def __init__(self, db: Session):
        self.db = db

    def get_category(self, category_id: uuid.UUID) -> ExpenseCategory:
        category = self.db.get(ExpenseCategory, category_id)
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    def require_usable(self, category_id: uuid.UUID | None) -> None:
        """
        Check that a new reference may point at this category.

        Existing references to a deactivated category stay valid;
        only new ones are refused.
        """
        if category_id is None:
            return
        category = self.db.get(ExpenseCategory, category_id)
        if not category:
            raise BusinessRuleError(f"Category {category_id} does not exist.")
        if not category.is_active:
            raise BusinessRuleError(f"Category '{category.name}' is not active.")

    def list_categories(self, active_only: bool = True) -> list[ExpenseCategory]:
        stmt = select(ExpenseCategory).order_by(ExpenseCategory.name)
        if active_only:
            stmt = stmt.where(ExpenseCategory.is_active.is_(True))
        return list(self.db.execute(stmt).scalars().all())

    def create_category(self, request: CategoryCreate) -> ExpenseCategory:
        existing = self.db.execute(
            select(ExpenseCategory).where(ExpenseCategory.name == request.name)
        ).scalar_one_or_none()
        if existing:
            raise BusinessRuleError(
                f"Category '{request.name}' already exists."
            )

        category = ExpenseCategory.create(
            name=request.name,
            description=request.description,
            icon=request.icon,
            color=request.color,
        )
        self.db.add(category)
        self.db.flush()
        logger.info("Created category %s (%s)", category.name, category.id)
        return category

    def activate_category(self, category_id: uuid.UUID) -> ExpenseCategory:
        category = self.get_category(category_id)
        category.activate()
        self.db.flush()
        return category

    def deactivate_category(self, category_id: uuid.UUID) -> ExpenseCategory:
        category = self.get_category(category_id)
        category.deactivate()
        self.db.flush()
        logger.info("Deactivated category %s", category.name)
        return category

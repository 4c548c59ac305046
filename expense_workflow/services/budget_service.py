"""
Budget service: budget administration and utilization.

Utilization is never stored on the budget. It is derived from
approved expenses inside the budget's date range every time it
is asked for, so it cannot drift from the expenses themselves.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from expense_workflow.exceptions import BusinessRuleError, NotFoundError
from expense_workflow.models.base import utcnow
from expense_workflow.models.budget import Budget
from expense_workflow.models.enums import ExpenseStatus
from expense_workflow.models.expense_request import ExpenseRequest
from expense_workflow.schemas.budget import (
    BudgetCreate,
    BudgetUpdate,
    BudgetStatus,
)
from expense_workflow.services.category_service import CategoryService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class BudgetService:

    def __init__(self, db: Session):
        self.db = db
        self.category_service = CategoryService(db)

    def _load(self, budget_id: uuid.UUID) -> Budget:
        budget = self.db.get(Budget, budget_id)
        if not budget:
            raise NotFoundError("Budget", budget_id)
        return budget

    def create_budget(
        self, user_id: uuid.UUID | None, request: BudgetCreate
    ) -> Budget:
        """Create a budget owned by user_id, or a global one when None."""
        self.category_service.require_usable(request.category_id)
        budget = Budget.create(
            name=request.name,
            amount=request.amount,
            start_date=request.start_date,
            end_date=request.end_date,
            description=request.description,
            user_id=user_id,
            category_id=request.category_id,
        )
        self.db.add(budget)
        self.db.flush()
        logger.info("Budget %s created for %s", budget.id, user_id or "all users")
        return budget

    def update_budget(self, budget_id: uuid.UUID, request: BudgetUpdate) -> Budget:
        budget = self._load(budget_id)
        budget.update(
            name=request.name,
            amount=request.amount,
            start_date=request.start_date,
            end_date=request.end_date,
            description=request.description,
        )
        self.db.flush()
        return budget

    def activate_budget(self, budget_id: uuid.UUID) -> Budget:
        budget = self._load(budget_id)
        budget.activate()
        self.db.flush()
        return budget

    def deactivate_budget(self, budget_id: uuid.UUID) -> Budget:
        budget = self._load(budget_id)
        budget.deactivate()
        self.db.flush()
        return budget

    def delete_budget(self, budget_id: uuid.UUID, user_id: uuid.UUID) -> None:
        budget = self._load(budget_id)
        if budget.user_id != user_id:
            raise BusinessRuleError("You can only delete your own budgets.")
        self.db.delete(budget)
        self.db.flush()
        logger.info("Budget %s deleted by %s", budget_id, user_id)

    def get_user_budgets(
        self, user_id: uuid.UUID, active_only: bool = False
    ) -> list[Budget]:
        """Budgets owned by a user, newest first."""
        stmt = select(Budget).where(Budget.user_id == user_id)
        if active_only:
            stmt = stmt.where(Budget.is_active.is_(True))
        budgets = self.db.execute(
            stmt.order_by(Budget.created_at.desc())
        ).scalars().all()
        return list(budgets)

    def spent_amount(self, budget: Budget) -> Decimal:
        """
        Sum of approved expenses counted against a budget.

        A user budget counts only that user's expenses, a global one
        counts everyone's. A category budget counts only its category.
        The date range is inclusive at both ends.
        """
        stmt = select(func.coalesce(func.sum(ExpenseRequest.amount), 0)).where(
            ExpenseRequest.status == ExpenseStatus.APPROVED,
            ExpenseRequest.expense_date >= budget.start_date,
            ExpenseRequest.expense_date <= budget.end_date,
        )
        if budget.user_id is not None:
            stmt = stmt.where(ExpenseRequest.creator_id == budget.user_id)
        if budget.category_id is not None:
            stmt = stmt.where(ExpenseRequest.category_id == budget.category_id)

        total = self.db.execute(stmt).scalar()
        return Decimal(str(total)).quantize(CENT)

    def compute_status(
        self, budget: Budget, now: datetime | None = None
    ) -> BudgetStatus:
        now = now or utcnow()
        amount = Decimal(str(budget.amount)).quantize(CENT)
        spent = self.spent_amount(budget)

        if amount > 0:
            percentage_used = round(float(spent / amount * 100), 2)
        else:
            percentage_used = 0.0

        return BudgetStatus(
            budget_id=budget.id,
            budget_name=budget.name,
            description=budget.description,
            budget_amount=amount,
            spent_amount=spent,
            remaining_amount=amount - spent,
            percentage_used=percentage_used,
            category_name=budget.category.name if budget.category else None,
            category_icon=budget.category.icon if budget.category else None,
            start_date=budget.start_date,
            end_date=budget.end_date,
            days_remaining=max(0, (budget.end_date - now).days),
            is_over_budget=spent > amount,
            is_active=budget.is_currently_active(now),
        )

    def get_budget_status(
        self, user_id: uuid.UUID, now: datetime | None = None
    ) -> list[BudgetStatus]:
        """
        Utilization of the active budgets that apply to a user.

        Includes the user's own budgets and global ones, most used first.
        """
        budgets = self.db.execute(
            select(Budget).where(
                Budget.is_active.is_(True),
                or_(Budget.user_id == user_id, Budget.user_id.is_(None)),
            )
        ).scalars().all()

        statuses = [self.compute_status(b, now) for b in budgets]
        return sorted(statuses, key=lambda s: s.percentage_used, reverse=True)

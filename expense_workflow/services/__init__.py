"""Business logic services."""

from expense_workflow.services.user_directory import UserDirectory
from expense_workflow.services.category_service import CategoryService
from expense_workflow.services.expense_service import ExpenseService
from expense_workflow.services.budget_service import BudgetService

__all__ = ["UserDirectory", "CategoryService", "ExpenseService", "BudgetService"]

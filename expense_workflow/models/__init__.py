"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from expense_workflow.models.base import Base
from expense_workflow.models.enums import (
    ExpenseStatus,
    UserRole,
    AuditAction,
)
from expense_workflow.models.user import User
from expense_workflow.models.category import ExpenseCategory
from expense_workflow.models.expense_request import ExpenseRequest
from expense_workflow.models.audit_log import AuditLog
from expense_workflow.models.comment import ExpenseComment
from expense_workflow.models.budget import Budget
from expense_workflow.models.events import (
    ExpenseSubmitted,
    ExpenseApproved,
    ExpenseRejected,
)
from expense_workflow.models import immutability  # noqa: F401  registers listeners

__all__ = [
    "Base",
    "ExpenseStatus",
    "UserRole",
    "AuditAction",
    "User",
    "ExpenseCategory",
    "ExpenseRequest",
    "AuditLog",
    "ExpenseComment",
    "Budget",
    "ExpenseSubmitted",
    "ExpenseApproved",
    "ExpenseRejected",
]

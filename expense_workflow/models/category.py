"""
Expense category model.

Reference data used to classify expenses and budgets. Categories
are deactivated rather than deleted; deactivation never invalidates
expenses or budgets that already point at the category.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from expense_workflow.exceptions import BusinessRuleError
from expense_workflow.models.base import Base, utcnow


class ExpenseCategory(Base):
    __tablename__ = "expense_categories"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(
        String(500), nullable=False, default=""
    )
    icon: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    color: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    @classmethod
    def create(
        cls,
        name: str,
        description: str = "",
        icon: str = "",
        color: str = "",
    ) -> "ExpenseCategory":
        if not name or not name.strip():
            raise BusinessRuleError("Category name cannot be empty.")
        return cls(
            id=uuid.uuid4(),
            name=name.strip(),
            description=description or "",
            icon=icon or "",
            color=color or "",
            is_active=True,
            created_at=utcnow(),
        )

    def activate(self) -> None:
        self.is_active = True

    def deactivate(self) -> None:
        self.is_active = False

    def __repr__(self) -> str:
        return f"<ExpenseCategory {self.name}>"

"""
Budget model.

A spending allocation over a date range. A budget may be scoped
to one user and/or one category; a null scope means "everyone" or
"every category". How much of it has been spent is never stored
here, it is computed from approved expenses on demand.
"""

import uuid
from typing import Optional
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, ForeignKey, Index, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_workflow.exceptions import BusinessRuleError
from expense_workflow.models.base import Base, utcnow, to_utc_naive, to_money


def _validate(name: str, amount: Decimal, start_date, end_date) -> None:
    if not name or not name.strip():
        raise BusinessRuleError("Budget name cannot be empty.")
    if amount <= 0:
        raise BusinessRuleError("Budget amount must be greater than zero.")
    if start_date >= end_date:
        raise BusinessRuleError("Start date must be before end date.")


class Budget(Base):
    __tablename__ = "budgets"
    __table_args__ = (
        Index("ix_budgets_active_range", "is_active", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(
        String(1000), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    # Null: applies to all users
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, index=True
    )
    # Null: applies to all categories
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("expense_categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    category: Mapped[Optional["ExpenseCategory"]] = relationship("ExpenseCategory")

    @classmethod
    def create(
        cls,
        name: str,
        amount,
        start_date: datetime,
        end_date: datetime,
        description: str | None = None,
        user_id: uuid.UUID | None = None,
        category_id: uuid.UUID | None = None,
    ) -> "Budget":
        amount = to_money(amount, "Budget amount")
        start_date = to_utc_naive(start_date)
        end_date = to_utc_naive(end_date)
        _validate(name, amount, start_date, end_date)
        return cls(
            id=uuid.uuid4(),
            name=name.strip(),
            description=description,
            amount=amount,
            start_date=start_date,
            end_date=end_date,
            user_id=user_id,
            category_id=category_id,
            is_active=True,
            created_at=utcnow(),
        )

    def update(
        self,
        name: str,
        amount,
        start_date: datetime,
        end_date: datetime,
        description: str | None = None,
    ) -> None:
        amount = to_money(amount, "Budget amount")
        start_date = to_utc_naive(start_date)
        end_date = to_utc_naive(end_date)
        _validate(name, amount, start_date, end_date)
        self.name = name.strip()
        self.description = description
        self.amount = amount
        self.start_date = start_date
        self.end_date = end_date
        self.updated_at = utcnow()

    def activate(self) -> None:
        self.is_active = True
        self.updated_at = utcnow()

    def deactivate(self) -> None:
        self.is_active = False
        self.updated_at = utcnow()

    def is_currently_active(self, now: datetime | None = None) -> bool:
        """Active flag set and now inside [start_date, end_date]."""
        now = now or utcnow()
        return self.is_active and self.start_date <= now <= self.end_date

    def __repr__(self) -> str:
        return f"<Budget {self.name} {self.amount}>"

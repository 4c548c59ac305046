"""
Expense comment model.

Free-text notes left on an expense request by its creator or a
reviewer. Comments are written once and never edited.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from expense_workflow.exceptions import BusinessRuleError
from expense_workflow.models.base import Base, utcnow


MAX_COMMENT_LENGTH = 2000


class ExpenseComment(Base):
    __tablename__ = "expense_comments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    expense_request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_name: Mapped[str] = mapped_column(
        String(200), nullable=False, default=""
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    @classmethod
    def create(
        cls,
        expense_request_id: uuid.UUID,
        user_id: uuid.UUID,
        user_name: str,
        text: str,
    ) -> "ExpenseComment":
        if not text or not text.strip():
            raise BusinessRuleError("Comment text cannot be empty.")
        if len(text) > MAX_COMMENT_LENGTH:
            raise BusinessRuleError(
                f"Comments are limited to {MAX_COMMENT_LENGTH} characters."
            )
        return cls(
            id=uuid.uuid4(),
            expense_request_id=expense_request_id,
            user_id=user_id,
            user_name=user_name or "",
            text=text.strip(),
            created_at=utcnow(),
        )

    def __repr__(self) -> str:
        return f"<ExpenseComment {self.id} on {self.expense_request_id}>"

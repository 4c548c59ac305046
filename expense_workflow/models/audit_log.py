"""
Audit log model.

One record per state-changing operation on an expense request,
written in the same unit of work as the change it documents.
Records are append-only: you never update or delete one.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, Text, Enum as SAEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from expense_workflow.models.base import Base, utcnow
from expense_workflow.models.enums import AuditAction, ExpenseStatus, UserRole


FIELD_LABELS = {
    "title": "Title",
    "description": "Description",
    "amount": "Amount",
    "category_id": "Category",
}


def _render_value(name: str, value) -> str:
    if value is None:
        return "none"
    if name == "amount":
        return f"{value:.2f}"
    if isinstance(value, str):
        return f"'{value}'"
    return str(value)


def render_changes(changes: dict[str, tuple]) -> str:
    """
    Summarise changed fields for an audit record,
    e.g. "Title: 'Taxi' -> 'Airport taxi'; Amount: 50.00 -> 75.00".
    """
    if not changes:
        return "No changes"
    parts = []
    for name, (old, new) in changes.items():
        label = FIELD_LABELS.get(name, name)
        parts.append(
            f"{label}: {_render_value(name, old)} -> {_render_value(name, new)}"
        )
    return "; ".join(parts)


class AuditLog(Base):
    """
    Immutable record of one change to an expense request.

    expense_request_id is deliberately not a foreign key: the
    history of a deleted draft is kept.
    """

    __tablename__ = "audit_logs"

    # Integer key doubles as insertion order for records that share
    # a timestamp.
    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    expense_request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    previous_status: Mapped[ExpenseStatus | None] = mapped_column(
        SAEnum(ExpenseStatus, name="audit_previous_status_enum"),
        nullable=True,
    )
    new_status: Mapped[ExpenseStatus | None] = mapped_column(
        SAEnum(ExpenseStatus, name="audit_new_status_enum"),
        nullable=True,
    )
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False, index=True
    )

    @classmethod
    def record(
        cls,
        expense_request_id: uuid.UUID,
        user_id: uuid.UUID,
        action: AuditAction | str,
        previous_status: ExpenseStatus | None = None,
        new_status: ExpenseStatus | None = None,
        details: str | None = None,
    ) -> "AuditLog":
        return cls(
            external_id=uuid.uuid4(),
            expense_request_id=expense_request_id,
            user_id=user_id,
            action=action.value if isinstance(action, AuditAction) else action,
            previous_status=previous_status,
            new_status=new_status,
            details=details,
            timestamp=utcnow(),
        )

    # --- One factory per action ---

    @classmethod
    def for_creation(cls, expense_request_id, user_id) -> "AuditLog":
        return cls.record(
            expense_request_id, user_id, AuditAction.CREATED,
            new_status=ExpenseStatus.DRAFT,
            details="Expense request created",
        )

    @classmethod
    def for_update(
        cls, expense_request_id, user_id, changes: dict[str, tuple]
    ) -> "AuditLog":
        return cls.record(
            expense_request_id, user_id, AuditAction.UPDATED,
            details=render_changes(changes),
        )

    @classmethod
    def for_submission(cls, expense_request_id, user_id) -> "AuditLog":
        return cls.record(
            expense_request_id, user_id, AuditAction.SUBMITTED,
            previous_status=ExpenseStatus.DRAFT,
            new_status=ExpenseStatus.SUBMITTED,
            details="Submitted for approval",
        )

    @classmethod
    def for_approval(
        cls, expense_request_id, user_id, role: UserRole
    ) -> "AuditLog":
        return cls.record(
            expense_request_id, user_id, AuditAction.APPROVED,
            previous_status=ExpenseStatus.SUBMITTED,
            new_status=ExpenseStatus.APPROVED,
            details=f"Approved by {role.value}",
        )

    @classmethod
    def for_rejection(
        cls, expense_request_id, user_id, role: UserRole, reason: str
    ) -> "AuditLog":
        return cls.record(
            expense_request_id, user_id, AuditAction.REJECTED,
            previous_status=ExpenseStatus.SUBMITTED,
            new_status=ExpenseStatus.REJECTED,
            details=f"Rejected by {role.value}: {reason}",
        )

    @classmethod
    def for_attachment_added(
        cls, expense_request_id, user_id, url: str
    ) -> "AuditLog":
        return cls.record(
            expense_request_id, user_id, AuditAction.ATTACHMENT_ADDED,
            details=f"Added attachment: {url}",
        )

    @classmethod
    def for_attachment_removed(
        cls, expense_request_id, user_id, url: str
    ) -> "AuditLog":
        return cls.record(
            expense_request_id, user_id, AuditAction.ATTACHMENT_REMOVED,
            details=f"Removed attachment: {url}",
        )

    @classmethod
    def for_deletion(cls, expense_request_id, user_id) -> "AuditLog":
        return cls.record(
            expense_request_id, user_id, AuditAction.DELETED,
            previous_status=ExpenseStatus.DRAFT,
            details="Draft expense request deleted",
        )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.expense_request_id}>"

"""
Expense request model.

The heart of the workflow. An expense request moves through a
small state machine:

    DRAFT -> SUBMITTED -> APPROVED
                       -> REJECTED

APPROVED and REJECTED are terminal. Every mutator checks all of its
preconditions before touching any attribute, so a rejected call
leaves the request exactly as it was.

The rules live on the entity rather than in the HTTP layer so the
same guarantees hold for every caller.
"""

import uuid
from typing import Optional
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, ForeignKey, JSON,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_workflow.exceptions import BusinessRuleError
from expense_workflow.models.base import Base, utcnow, to_utc_naive, to_money
from expense_workflow.models.enums import ExpenseStatus, UserRole
from expense_workflow.models.events import (
    ExpenseSubmitted,
    ExpenseApproved,
    ExpenseRejected,
)


# Amount above which at least one attachment is required to submit
RECEIPT_THRESHOLD = Decimal("100")
# Amount above which only an admin may approve
APPROVAL_CEILING = Decimal("1000")
# How far back an expense date may go; 0 disables the check
LOOKBACK_DAYS = 90

APPROVER_ROLES = {UserRole.MANAGER, UserRole.ADMIN}
TERMINAL_STATUSES = {ExpenseStatus.APPROVED, ExpenseStatus.REJECTED}


def _to_datetime(value) -> datetime:
    if not isinstance(value, (date, datetime)):
        raise BusinessRuleError("Expense date is required.")
    return to_utc_naive(value)


def _check_title(title: str) -> None:
    if not title or not title.strip():
        raise BusinessRuleError("Title cannot be empty.")


def _check_amount(amount: Decimal) -> None:
    if amount <= 0:
        raise BusinessRuleError("Amount must be greater than zero.")


class ExpenseRequest(Base):
    __tablename__ = "expense_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, nullable=False, index=True
    )
    creator_role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="creator_role_enum", create_constraint=True),
        nullable=False,
        default=UserRole.EMPLOYEE,
    )
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("expense_categories.id"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(
        String(1000), nullable=False, default=""
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    expense_date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )
    status: Mapped[ExpenseStatus] = mapped_column(
        SAEnum(
            ExpenseStatus,
            name="expense_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=ExpenseStatus.DRAFT,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    processed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    # Ordered list of receipt URLs. Always replaced, never mutated
    # in place, so the ORM sees every change.
    attachment_urls: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )

    category: Mapped[Optional["ExpenseCategory"]] = relationship("ExpenseCategory")

    @classmethod
    def create(
        cls,
        creator_id: uuid.UUID,
        title: str,
        description: str,
        amount,
        expense_date,
        category_id: uuid.UUID | None = None,
        creator_role: UserRole = UserRole.EMPLOYEE,
        lookback_days: int = LOOKBACK_DAYS,
        now: datetime | None = None,
    ) -> "ExpenseRequest":
        """
        Start a new request in DRAFT.

        This is the only entry point for new requests. Rows loaded
        from the database are rebuilt by the ORM without passing
        through here.
        """
        now = now or utcnow()
        amount = to_money(amount)
        expense_date = _to_datetime(expense_date)

        _check_title(title)
        _check_amount(amount)
        if expense_date > now:
            raise BusinessRuleError("Expense date cannot be in the future.")
        if lookback_days and expense_date < now - timedelta(days=lookback_days):
            raise BusinessRuleError(
                f"Expense date cannot be more than {lookback_days} days "
                f"in the past."
            )

        return cls(
            id=uuid.uuid4(),
            creator_id=creator_id,
            creator_role=creator_role,
            category_id=category_id,
            title=title.strip(),
            description=description or "",
            amount=amount,
            expense_date=expense_date,
            status=ExpenseStatus.DRAFT,
            created_at=now,
            attachment_urls=[],
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def has_attachments(self) -> bool:
        return bool(self.attachment_urls)

    # --- Draft editing ---

    def update(
        self,
        user_id: uuid.UUID,
        title: str,
        description: str,
        amount,
        category_id: uuid.UUID | None = None,
    ) -> dict[str, tuple]:
        """
        Edit a draft. Only the creator may do this.

        Returns the changed fields as {field: (old, new)}.
        """
        if self.status != ExpenseStatus.DRAFT:
            raise BusinessRuleError("Only draft requests can be edited.")
        if user_id != self.creator_id:
            raise BusinessRuleError("Only the creator can edit this request.")
        amount = to_money(amount)
        _check_title(title)
        _check_amount(amount)

        new_values = {
            "title": title.strip(),
            "description": description or "",
            "amount": amount,
            "category_id": category_id,
        }
        changes = {}
        for name, new in new_values.items():
            old = getattr(self, name)
            if old != new:
                changes[name] = (old, new)
            setattr(self, name, new)

        self.updated_at = utcnow()
        return changes

    def add_attachment(self, url: str) -> None:
        if self.status != ExpenseStatus.DRAFT:
            raise BusinessRuleError(
                "Only draft requests can have attachments added."
            )
        if not url or not url.strip():
            raise BusinessRuleError("Attachment URL cannot be empty.")

        self.attachment_urls = [*(self.attachment_urls or []), url.strip()]
        self.updated_at = utcnow()

    def remove_attachment(self, url: str) -> None:
        if self.status != ExpenseStatus.DRAFT:
            raise BusinessRuleError(
                "Only draft requests can have attachments removed."
            )
        url = (url or "").strip()
        urls = list(self.attachment_urls or [])
        if url not in urls:
            raise BusinessRuleError("Attachment not found on this request.")

        urls.remove(url)
        self.attachment_urls = urls
        self.updated_at = utcnow()

    # --- Workflow transitions ---

    def submit(
        self,
        user_id: uuid.UUID,
        receipt_threshold: Decimal = RECEIPT_THRESHOLD,
    ) -> ExpenseSubmitted:
        if self.status != ExpenseStatus.DRAFT:
            raise BusinessRuleError("Only drafts can be submitted.")
        if user_id != self.creator_id:
            raise BusinessRuleError(
                "Only the creator can submit this request."
            )
        if self.amount > receipt_threshold and not self.has_attachments:
            raise BusinessRuleError(
                f"Expenses over ${receipt_threshold} require a receipt "
                f"attachment."
            )

        now = utcnow()
        self.status = ExpenseStatus.SUBMITTED
        self.submitted_at = now
        self.updated_at = now
        return ExpenseSubmitted(
            expense_id=self.id, submitted_by=user_id, amount=self.amount,
        )

    def approve(
        self,
        acting_user_id: uuid.UUID,
        acting_role: UserRole,
        approval_ceiling: Decimal = APPROVAL_CEILING,
    ) -> ExpenseApproved:
        """
        Approve a submitted request.

        Guards run in a fixed order and the first failure wins:
        role, status, self-approval, manager-on-manager, value ceiling.
        """
        if acting_role not in APPROVER_ROLES:
            raise BusinessRuleError(
                "Only managers or admins can approve requests."
            )
        if self.status != ExpenseStatus.SUBMITTED:
            raise BusinessRuleError("Only submitted requests can be approved.")
        if acting_role == UserRole.MANAGER:
            if acting_user_id == self.creator_id:
                raise BusinessRuleError(
                    "Managers cannot approve their own expenses. "
                    "Only admins can approve manager expenses."
                )
            if self.creator_role == UserRole.MANAGER:
                raise BusinessRuleError(
                    "Managers cannot approve other managers' expenses. "
                    "Only admins can approve manager expenses."
                )
        if self.amount > approval_ceiling and acting_role != UserRole.ADMIN:
            raise BusinessRuleError(
                f"Expenses over ${approval_ceiling} require admin approval."
            )

        now = utcnow()
        self.status = ExpenseStatus.APPROVED
        self.processed_at = now
        self.processed_by = acting_user_id
        self.updated_at = now
        return ExpenseApproved(
            expense_id=self.id, approved_by=acting_user_id, amount=self.amount,
        )

    def reject(
        self,
        acting_user_id: uuid.UUID,
        acting_role: UserRole,
        reason: str,
    ) -> ExpenseRejected:
        if acting_role not in APPROVER_ROLES:
            raise BusinessRuleError(
                "Only managers or admins can reject requests."
            )
        if self.status != ExpenseStatus.SUBMITTED:
            raise BusinessRuleError("Only submitted requests can be rejected.")
        if not reason or not reason.strip():
            raise BusinessRuleError("Rejection reason is required.")

        now = utcnow()
        self.status = ExpenseStatus.REJECTED
        self.processed_at = now
        self.processed_by = acting_user_id
        self.rejection_reason = reason
        self.updated_at = now
        return ExpenseRejected(
            expense_id=self.id, rejected_by=acting_user_id, reason=reason,
        )

    # --- Guards for collaborators ---

    def ensure_not_approved(self) -> None:
        if self.status == ExpenseStatus.APPROVED:
            raise BusinessRuleError("Approved requests cannot be modified.")

    def ensure_not_rejected(self) -> None:
        if self.status == ExpenseStatus.REJECTED:
            raise BusinessRuleError("Rejected requests cannot be resubmitted.")

    def assign_creator_role(self, role: UserRole) -> None:
        """
        Refresh the role captured for the creator.

        Used by the orchestration layer with the role held by the
        identity store, before approval guards run.
        """
        if self.is_terminal:
            raise BusinessRuleError(
                "Creator role cannot change on a processed request."
            )
        self.creator_role = role

    def __repr__(self) -> str:
        return (
            f"<ExpenseRequest {self.id} "
            f"{self.amount} ({self.status.value})>"
        )

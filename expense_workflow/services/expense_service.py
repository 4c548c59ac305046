"""
Expense service: orchestrates the expense request workflow.

Every mutating operation follows the same steps:
1. Load the request (NotFoundError if the id does not resolve)
2. Call the entity's own mutator, which validates and changes state
3. Build the matching audit record
4. Add both to the session and flush

The caller owns the commit. A rule violation raises before anything
is added to the session, so a failed call never leaves an audit
record behind, and a commit covers the change and its audit record
together.

Domain events are held until the session commits and only then handed
to on_event. A rollback discards them, so listeners never hear about
a transition that was not persisted.
"""

import logging
import uuid
from typing import Callable

from sqlalchemy import select, func, or_, delete, event
from sqlalchemy.orm import Session

from expense_workflow.config import Settings, get_settings
from expense_workflow.exceptions import BusinessRuleError, NotFoundError
from expense_workflow.models.audit_log import AuditLog
from expense_workflow.models.base import to_utc_naive
from expense_workflow.models.comment import ExpenseComment
from expense_workflow.models.enums import ExpenseStatus, UserRole
from expense_workflow.models.events import DomainEvent
from expense_workflow.models.expense_request import ExpenseRequest
from expense_workflow.schemas.expense import (
    ExpenseQuery,
    ExpenseResponse,
    PagedExpenses,
)
from expense_workflow.services.category_service import CategoryService
from expense_workflow.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)


# Accepted sort keys, in both the API's camelCase and snake_case
SORT_COLUMNS = {
    "amount": ExpenseRequest.amount,
    "expenseDate": ExpenseRequest.expense_date,
    "expense_date": ExpenseRequest.expense_date,
    "submittedAt": ExpenseRequest.submitted_at,
    "submitted_at": ExpenseRequest.submitted_at,
    "createdAt": ExpenseRequest.created_at,
    "created_at": ExpenseRequest.created_at,
}
DEFAULT_SORT_KEY = "createdAt"


class ExpenseService:

    def __init__(
        self,
        db: Session,
        directory: UserDirectory | None = None,
        settings: Settings | None = None,
        on_event: Callable[[DomainEvent], None] | None = None,
    ):
        self.db = db
        self.directory = directory or UserDirectory(db)
        self.settings = settings or get_settings()
        self.on_event = on_event
        self.category_service = CategoryService(db)
        self._pending_events: list[DomainEvent] = []
        if on_event is not None:
            event.listen(db, "after_commit", self._deliver_events)
            event.listen(db, "after_soft_rollback", self._discard_events)

    def _load(self, expense_id: uuid.UUID) -> ExpenseRequest:
        expense = self.db.get(ExpenseRequest, expense_id)
        if not expense:
            raise NotFoundError("Expense", expense_id)
        return expense

    def _save(self, expense: ExpenseRequest, audit: AuditLog) -> None:
        self.db.add(expense)
        self.db.add(audit)
        self.db.flush()

    def _dispatch(self, domain_event: DomainEvent) -> None:
        logger.info("Domain event %s pending commit", domain_event)
        if self.on_event is not None:
            self._pending_events.append(domain_event)

    def _deliver_events(self, session) -> None:
        pending, self._pending_events = self._pending_events, []
        for domain_event in pending:
            self.on_event(domain_event)

    def _discard_events(self, session, previous_transaction) -> None:
        if self._pending_events:
            logger.info(
                "Discarding %d domain events after rollback",
                len(self._pending_events),
            )
        self._pending_events = []

    # --- Commands ---

    def create_expense(
        self,
        creator_id: uuid.UUID,
        title: str,
        description: str,
        amount,
        expense_date,
        category_id: uuid.UUID | None = None,
    ) -> ExpenseRequest:
        """
        Create a new expense request in DRAFT.

        The creator's role is captured now, from the identity store,
        for the approval guards that run later.
        """
        self.category_service.require_usable(category_id)
        creator_role = self.directory.role_of(creator_id) or UserRole.EMPLOYEE

        expense = ExpenseRequest.create(
            creator_id=creator_id,
            title=title,
            description=description,
            amount=amount,
            expense_date=expense_date,
            category_id=category_id,
            creator_role=creator_role,
            lookback_days=self.settings.EXPENSE_LOOKBACK_DAYS,
        )
        self._save(expense, AuditLog.for_creation(expense.id, creator_id))
        logger.info(
            "Expense %s created by %s for %s", expense.id, creator_id, expense.amount
        )
        return expense

    def update_expense(
        self,
        expense_id: uuid.UUID,
        user_id: uuid.UUID,
        title: str,
        description: str,
        amount,
        category_id: uuid.UUID | None = None,
    ) -> ExpenseRequest:
        expense = self._load(expense_id)
        if category_id is not None and category_id != expense.category_id:
            self.category_service.require_usable(category_id)

        changes = expense.update(user_id, title, description, amount, category_id)
        self._save(expense, AuditLog.for_update(expense.id, user_id, changes))
        logger.info("Expense %s updated by %s", expense.id, user_id)
        return expense

    def submit_expense(
        self, expense_id: uuid.UUID, user_id: uuid.UUID
    ) -> ExpenseRequest:
        expense = self._load(expense_id)
        domain_event = expense.submit(
            user_id, receipt_threshold=self.settings.RECEIPT_THRESHOLD
        )
        self._save(expense, AuditLog.for_submission(expense.id, user_id))
        self._dispatch(domain_event)
        return expense

    def approve_expense(
        self,
        expense_id: uuid.UUID,
        acting_user_id: uuid.UUID,
        acting_role: UserRole,
    ) -> ExpenseRequest:
        """
        Approve a submitted expense.

        The creator's current role is read from the identity store
        before the guards run, so a creator promoted to manager after
        submitting is treated as a manager.
        """
        expense = self._load(expense_id)
        creator_role = self.directory.role_of(expense.creator_id)
        if (
            creator_role is not None
            and creator_role != expense.creator_role
            and not expense.is_terminal
        ):
            expense.assign_creator_role(creator_role)

        domain_event = expense.approve(
            acting_user_id,
            acting_role,
            approval_ceiling=self.settings.APPROVAL_CEILING,
        )
        self._save(
            expense, AuditLog.for_approval(expense.id, acting_user_id, acting_role)
        )
        self._dispatch(domain_event)
        return expense

    def reject_expense(
        self,
        expense_id: uuid.UUID,
        acting_user_id: uuid.UUID,
        acting_role: UserRole,
        reason: str,
    ) -> ExpenseRequest:
        expense = self._load(expense_id)
        domain_event = expense.reject(acting_user_id, acting_role, reason)
        self._save(
            expense,
            AuditLog.for_rejection(expense.id, acting_user_id, acting_role, reason),
        )
        self._dispatch(domain_event)
        return expense

    def _attachment_actor(
        self, expense: ExpenseRequest, user_id: uuid.UUID | None
    ) -> uuid.UUID:
        if user_id is None:
            return expense.creator_id
        if user_id != expense.creator_id:
            raise BusinessRuleError(
                "Only the creator can change attachments on this request."
            )
        return user_id

    def add_attachment(
        self,
        expense_id: uuid.UUID,
        url: str,
        user_id: uuid.UUID | None = None,
    ) -> ExpenseRequest:
        """
        Attach a receipt URL to a draft.

        The audit record is attributed to user_id when given, else
        to the creator.
        """
        expense = self._load(expense_id)
        actor = self._attachment_actor(expense, user_id)
        expense.add_attachment(url)
        self._save(
            expense,
            AuditLog.for_attachment_added(expense.id, actor, url.strip()),
        )
        return expense

    def remove_attachment(
        self,
        expense_id: uuid.UUID,
        url: str,
        user_id: uuid.UUID | None = None,
    ) -> ExpenseRequest:
        expense = self._load(expense_id)
        actor = self._attachment_actor(expense, user_id)
        expense.remove_attachment(url)
        self._save(
            expense,
            AuditLog.for_attachment_removed(expense.id, actor, url.strip()),
        )
        return expense

    def delete_expense(self, expense_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """
        Delete a draft. Submitted requests are never physically removed.

        The audit trail of the draft is kept, with a final Deleted record.
        """
        expense = self._load(expense_id)
        if expense.status != ExpenseStatus.DRAFT:
            raise BusinessRuleError("Only draft requests can be deleted.")
        if user_id != expense.creator_id:
            raise BusinessRuleError("Only the creator can delete this request.")

        self.db.execute(
            delete(ExpenseComment).where(
                ExpenseComment.expense_request_id == expense.id
            )
        )
        self.db.delete(expense)
        self.db.add(AuditLog.for_deletion(expense.id, user_id))
        self.db.flush()
        logger.info("Draft expense %s deleted by %s", expense.id, user_id)

    def add_comment(
        self, expense_id: uuid.UUID, user_id: uuid.UUID, text: str
    ) -> ExpenseComment:
        expense = self._load(expense_id)
        comment = ExpenseComment.create(
            expense_request_id=expense.id,
            user_id=user_id,
            user_name=self.directory.display_name_of(user_id) or "",
            text=text,
        )
        self.db.add(comment)
        self.db.flush()
        return comment

    # --- Queries ---

    def get_expense(self, expense_id: uuid.UUID) -> ExpenseRequest:
        return self._load(expense_id)

    def get_expenses_by_creator(self, user_id: uuid.UUID) -> list[ExpenseRequest]:
        """All requests of one creator, newest first."""
        expenses = self.db.execute(
            select(ExpenseRequest)
            .where(ExpenseRequest.creator_id == user_id)
            .order_by(ExpenseRequest.created_at.desc())
        ).scalars().all()
        return list(expenses)

    def get_pending_expenses(self) -> list[ExpenseRequest]:
        """Submitted requests awaiting review, oldest submission first."""
        expenses = self.db.execute(
            select(ExpenseRequest)
            .where(ExpenseRequest.status == ExpenseStatus.SUBMITTED)
            .order_by(ExpenseRequest.submitted_at.asc())
        ).scalars().all()
        return list(expenses)

    def search_expenses(
        self, query: ExpenseQuery, creator_id: uuid.UUID | None = None
    ) -> PagedExpenses:
        """
        Filter, sort, and page expense requests.

        search matches a case-insensitive substring of title or
        description. Date and amount bounds are inclusive. page_size
        is clamped to [1, MAX_PAGE_SIZE].
        """
        stmt = select(ExpenseRequest)
        if creator_id is not None:
            stmt = stmt.where(ExpenseRequest.creator_id == creator_id)
        if query.search and query.search.strip():
            pattern = f"%{query.search.strip()}%"
            stmt = stmt.where(or_(
                ExpenseRequest.title.ilike(pattern),
                ExpenseRequest.description.ilike(pattern),
            ))
        if query.status is not None:
            stmt = stmt.where(ExpenseRequest.status == query.status)
        if query.from_date is not None:
            stmt = stmt.where(
                ExpenseRequest.expense_date >= to_utc_naive(query.from_date)
            )
        if query.to_date is not None:
            stmt = stmt.where(
                ExpenseRequest.expense_date <= to_utc_naive(query.to_date)
            )
        if query.min_amount is not None:
            stmt = stmt.where(ExpenseRequest.amount >= query.min_amount)
        if query.max_amount is not None:
            stmt = stmt.where(ExpenseRequest.amount <= query.max_amount)

        total_count = self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()

        column = SORT_COLUMNS.get(query.sort_by or DEFAULT_SORT_KEY)
        if column is None:
            column = SORT_COLUMNS[DEFAULT_SORT_KEY]
        if (query.sort_dir or "desc").lower() == "asc":
            stmt = stmt.order_by(column.asc(), ExpenseRequest.id)
        else:
            stmt = stmt.order_by(column.desc(), ExpenseRequest.id)

        page = max(1, query.page)
        page_size = min(max(1, query.page_size), self.settings.MAX_PAGE_SIZE)
        expenses = self.db.execute(
            stmt.offset((page - 1) * page_size).limit(page_size)
        ).scalars().all()

        return PagedExpenses(
            items=[self.to_response(e) for e in expenses],
            total_count=total_count,
            page=page,
            page_size=page_size,
        )

    def get_audit_history(self, expense_id: uuid.UUID) -> list[AuditLog]:
        """Audit records of a request in the order they were written."""
        records = self.db.execute(
            select(AuditLog)
            .where(AuditLog.expense_request_id == expense_id)
            .order_by(AuditLog.timestamp.asc(), AuditLog.id.asc())
        ).scalars().all()
        return list(records)

    def get_comments(self, expense_id: uuid.UUID) -> list[ExpenseComment]:
        self._load(expense_id)
        comments = self.db.execute(
            select(ExpenseComment)
            .where(ExpenseComment.expense_request_id == expense_id)
            .order_by(ExpenseComment.created_at.asc())
        ).scalars().all()
        return list(comments)

    def to_response(self, expense: ExpenseRequest) -> ExpenseResponse:
        """Response schema enriched with the creator's display name."""
        response = ExpenseResponse.model_validate(expense)
        response.creator_name = self.directory.display_name_of(expense.creator_id)
        return response

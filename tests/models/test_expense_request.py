"""
Tests for the ExpenseRequest state machine.

These exercise the entity on its own, without a session.
Persistence and audit behaviour are tested in the service tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from expense_workflow.exceptions import BusinessRuleError
from expense_workflow.models.base import utcnow
from expense_workflow.models.enums import ExpenseStatus, UserRole
from expense_workflow.models.events import (
    ExpenseSubmitted,
    ExpenseApproved,
    ExpenseRejected,
)
from expense_workflow.models.expense_request import ExpenseRequest


EMPLOYEE = uuid.uuid4()
MANAGER = uuid.uuid4()
OTHER_MANAGER = uuid.uuid4()
ADMIN = uuid.uuid4()


def make_expense(amount="50.00", creator_id=EMPLOYEE, **kwargs):
    kwargs.setdefault("expense_date", utcnow() - timedelta(days=1))
    return ExpenseRequest.create(
        creator_id=creator_id,
        title=kwargs.pop("title", "Taxi to client"),
        description=kwargs.pop("description", "Airport run"),
        amount=Decimal(amount),
        **kwargs,
    )


def submitted(amount="50.00", creator_id=EMPLOYEE, **kwargs):
    expense = make_expense(amount, creator_id, **kwargs)
    if Decimal(amount) > 100:
        expense.add_attachment("https://files.example.com/receipt.pdf")
    expense.submit(creator_id)
    return expense


# --- Creation ---

class TestCreate:

    def test_new_request_is_draft(self):
        expense = make_expense()
        assert expense.status == ExpenseStatus.DRAFT
        assert expense.id is not None
        assert expense.attachment_urls == []
        assert expense.submitted_at is None
        assert expense.processed_at is None

    def test_amount_accepts_numbers_and_strings(self):
        expense = make_expense(amount="75.5")
        assert expense.amount == Decimal("75.5")

    def test_amount_held_in_cents(self):
        expense = make_expense(amount="75.5")
        assert str(expense.amount) == "75.50"

    @pytest.mark.parametrize("amount", ["0.001", "12.345", "1000.004"])
    def test_sub_cent_amount_rejected(self, amount):
        with pytest.raises(BusinessRuleError, match="2 decimal places"):
            make_expense(amount=amount)

    def test_trailing_zero_digits_accepted(self):
        expense = make_expense(amount="50.000")
        assert expense.amount == Decimal("50.00")

    def test_empty_title_rejected(self):
        with pytest.raises(BusinessRuleError, match="Title cannot be empty"):
            make_expense(title="   ")

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(BusinessRuleError, match="greater than zero"):
            make_expense(amount=amount)

    def test_future_date_rejected(self):
        with pytest.raises(BusinessRuleError, match="future"):
            make_expense(expense_date=utcnow() + timedelta(days=2))

    def test_date_beyond_lookback_rejected(self):
        now = datetime(2026, 6, 1, 12, 0)
        with pytest.raises(BusinessRuleError, match="90 days"):
            make_expense(expense_date=now - timedelta(days=91), now=now)

    def test_date_inside_lookback_accepted(self):
        now = datetime(2026, 6, 1, 12, 0)
        expense = make_expense(expense_date=now - timedelta(days=89), now=now)
        assert expense.status == ExpenseStatus.DRAFT

    def test_lookback_zero_disables_check(self):
        now = datetime(2026, 6, 1, 12, 0)
        expense = make_expense(
            expense_date=now - timedelta(days=400), now=now, lookback_days=0,
        )
        assert expense.expense_date == now - timedelta(days=400)

    def test_aware_date_stored_as_naive_utc(self):
        aware = datetime.now(timezone(timedelta(hours=2))) - timedelta(days=1)
        expense = make_expense(expense_date=aware)
        assert expense.expense_date.tzinfo is None
        assert expense.expense_date == aware.astimezone(
            timezone.utc
        ).replace(tzinfo=None)

    def test_creator_role_captured(self):
        expense = make_expense(creator_id=MANAGER, creator_role=UserRole.MANAGER)
        assert expense.creator_role == UserRole.MANAGER


# --- Draft editing ---

class TestUpdate:

    def test_update_returns_changed_fields(self):
        expense = make_expense()
        changes = expense.update(EMPLOYEE, "Airport taxi", "Airport run", "75.00")

        assert changes == {
            "title": ("Taxi to client", "Airport taxi"),
            "amount": (Decimal("50.00"), Decimal("75.00")),
        }
        assert expense.title == "Airport taxi"
        assert expense.updated_at is not None

    def test_only_creator_can_edit(self):
        expense = make_expense()
        with pytest.raises(BusinessRuleError, match="Only the creator"):
            expense.update(MANAGER, "Hijacked", "", "50.00")
        assert expense.title == "Taxi to client"

    def test_submitted_request_cannot_be_edited(self):
        expense = submitted()
        with pytest.raises(BusinessRuleError, match="Only draft"):
            expense.update(EMPLOYEE, "Changed", "", "50.00")

    def test_update_validates_amount(self):
        expense = make_expense()
        with pytest.raises(BusinessRuleError, match="greater than zero"):
            expense.update(EMPLOYEE, "Taxi", "", "0")
        assert expense.amount == Decimal("50.00")

    def test_update_rejects_sub_cent_amount(self):
        expense = make_expense()
        with pytest.raises(BusinessRuleError, match="2 decimal places"):
            expense.update(EMPLOYEE, "Taxi", "", "0.009")
        assert expense.amount == Decimal("50.00")


# --- Attachments ---

class TestAttachments:

    def test_add_and_remove(self):
        expense = make_expense()
        expense.add_attachment("  https://files.example.com/a.pdf ")
        expense.add_attachment("https://files.example.com/b.pdf")
        assert expense.attachment_urls == [
            "https://files.example.com/a.pdf",
            "https://files.example.com/b.pdf",
        ]

        expense.remove_attachment("https://files.example.com/a.pdf")
        assert expense.attachment_urls == ["https://files.example.com/b.pdf"]

    def test_blank_url_rejected(self):
        expense = make_expense()
        with pytest.raises(BusinessRuleError, match="cannot be empty"):
            expense.add_attachment(" ")

    def test_removing_unknown_url_fails(self):
        expense = make_expense()
        with pytest.raises(BusinessRuleError, match="not found"):
            expense.remove_attachment("https://files.example.com/missing.pdf")

    def test_no_attachments_after_submission(self):
        expense = submitted()
        with pytest.raises(BusinessRuleError, match="Only draft"):
            expense.add_attachment("https://files.example.com/late.pdf")

    def test_no_removal_after_submission(self):
        expense = submitted(amount="150.00")
        with pytest.raises(BusinessRuleError, match="Only draft"):
            expense.remove_attachment("https://files.example.com/receipt.pdf")
        assert expense.attachment_urls == ["https://files.example.com/receipt.pdf"]

    def test_remove_matches_trimmed_url(self):
        expense = make_expense()
        expense.add_attachment(" https://files.example.com/a.pdf ")
        expense.remove_attachment(" https://files.example.com/a.pdf ")
        assert expense.attachment_urls == []


# --- Submission ---

class TestSubmit:

    def test_submit_moves_to_submitted(self):
        expense = make_expense()
        event = expense.submit(EMPLOYEE)

        assert expense.status == ExpenseStatus.SUBMITTED
        assert expense.submitted_at is not None
        assert isinstance(event, ExpenseSubmitted)
        assert event.expense_id == expense.id
        assert event.submitted_by == EMPLOYEE
        assert event.amount == Decimal("50.00")

    def test_over_threshold_requires_receipt(self):
        expense = make_expense(amount="150.00")
        with pytest.raises(BusinessRuleError, match="receipt"):
            expense.submit(EMPLOYEE)
        assert expense.status == ExpenseStatus.DRAFT
        assert expense.submitted_at is None

    def test_exactly_threshold_needs_no_receipt(self):
        expense = make_expense(amount="100.00")
        expense.submit(EMPLOYEE)
        assert expense.status == ExpenseStatus.SUBMITTED

    def test_over_threshold_with_receipt_submits(self):
        expense = make_expense(amount="150.00")
        expense.add_attachment("https://files.example.com/receipt.pdf")
        expense.submit(EMPLOYEE)
        assert expense.status == ExpenseStatus.SUBMITTED

    def test_only_creator_can_submit(self):
        expense = make_expense()
        with pytest.raises(BusinessRuleError, match="Only the creator"):
            expense.submit(MANAGER)

    def test_cannot_submit_twice(self):
        expense = submitted()
        with pytest.raises(BusinessRuleError, match="Only drafts"):
            expense.submit(EMPLOYEE)


# --- Approval ---

class TestApprove:

    def test_manager_approves_employee_expense(self):
        expense = submitted()
        event = expense.approve(MANAGER, UserRole.MANAGER)

        assert expense.status == ExpenseStatus.APPROVED
        assert expense.processed_by == MANAGER
        assert expense.processed_at is not None
        assert isinstance(event, ExpenseApproved)
        assert event.approved_by == MANAGER

    def test_employee_cannot_approve(self):
        expense = submitted()
        with pytest.raises(BusinessRuleError, match="Only managers or admins"):
            expense.approve(uuid.uuid4(), UserRole.EMPLOYEE)
        assert expense.status == ExpenseStatus.SUBMITTED

    def test_role_is_checked_before_status(self):
        expense = make_expense()
        with pytest.raises(BusinessRuleError, match="Only managers or admins"):
            expense.approve(uuid.uuid4(), UserRole.EMPLOYEE)

    def test_draft_cannot_be_approved(self):
        expense = make_expense()
        with pytest.raises(BusinessRuleError, match="Only submitted"):
            expense.approve(MANAGER, UserRole.MANAGER)

    def test_manager_cannot_approve_own_expense(self):
        expense = submitted(creator_id=MANAGER, creator_role=UserRole.MANAGER)
        with pytest.raises(BusinessRuleError, match="their own expenses"):
            expense.approve(MANAGER, UserRole.MANAGER)
        assert expense.status == ExpenseStatus.SUBMITTED

    def test_manager_cannot_approve_other_manager(self):
        expense = submitted(creator_id=MANAGER, creator_role=UserRole.MANAGER)
        with pytest.raises(BusinessRuleError, match="other managers"):
            expense.approve(OTHER_MANAGER, UserRole.MANAGER)

    def test_admin_approves_manager_expense(self):
        expense = submitted(creator_id=MANAGER, creator_role=UserRole.MANAGER)
        expense.approve(ADMIN, UserRole.ADMIN)
        assert expense.status == ExpenseStatus.APPROVED

    def test_admin_may_approve_own_expense(self):
        expense = submitted(creator_id=ADMIN, creator_role=UserRole.ADMIN)
        expense.approve(ADMIN, UserRole.ADMIN)
        assert expense.status == ExpenseStatus.APPROVED

    def test_over_ceiling_requires_admin(self):
        expense = submitted(amount="1500.00")
        with pytest.raises(BusinessRuleError, match="admin approval"):
            expense.approve(MANAGER, UserRole.MANAGER)

        expense.approve(ADMIN, UserRole.ADMIN)
        assert expense.status == ExpenseStatus.APPROVED

    def test_approved_is_terminal(self):
        expense = submitted()
        expense.approve(MANAGER, UserRole.MANAGER)

        assert expense.is_terminal
        with pytest.raises(BusinessRuleError):
            expense.approve(ADMIN, UserRole.ADMIN)
        with pytest.raises(BusinessRuleError):
            expense.reject(ADMIN, UserRole.ADMIN, "Too late")
        with pytest.raises(BusinessRuleError):
            expense.submit(EMPLOYEE)
        with pytest.raises(BusinessRuleError, match="Approved requests"):
            expense.ensure_not_approved()


# --- Rejection ---

class TestReject:

    def test_reject_records_reason(self):
        expense = submitted()
        event = expense.reject(MANAGER, UserRole.MANAGER, "Missing itinerary")

        assert expense.status == ExpenseStatus.REJECTED
        assert expense.rejection_reason == "Missing itinerary"
        assert expense.processed_by == MANAGER
        assert isinstance(event, ExpenseRejected)
        assert event.reason == "Missing itinerary"

    def test_reason_required(self):
        expense = submitted()
        with pytest.raises(BusinessRuleError, match="reason is required"):
            expense.reject(MANAGER, UserRole.MANAGER, "  ")
        assert expense.status == ExpenseStatus.SUBMITTED
        assert expense.rejection_reason is None

    def test_employee_cannot_reject(self):
        expense = submitted()
        with pytest.raises(BusinessRuleError, match="Only managers or admins"):
            expense.reject(uuid.uuid4(), UserRole.EMPLOYEE, "No")

    def test_rejected_is_terminal(self):
        expense = submitted()
        expense.reject(MANAGER, UserRole.MANAGER, "Duplicate")

        with pytest.raises(BusinessRuleError, match="Rejected requests"):
            expense.ensure_not_rejected()
        with pytest.raises(BusinessRuleError):
            expense.approve(ADMIN, UserRole.ADMIN)
        with pytest.raises(BusinessRuleError):
            expense.update(EMPLOYEE, "Retry", "", "50.00")


class TestCreatorRole:

    def test_role_can_be_refreshed_before_processing(self):
        expense = submitted()
        expense.assign_creator_role(UserRole.MANAGER)
        assert expense.creator_role == UserRole.MANAGER

    def test_role_frozen_once_processed(self):
        expense = submitted()
        expense.approve(MANAGER, UserRole.MANAGER)
        with pytest.raises(BusinessRuleError):
            expense.assign_creator_role(UserRole.MANAGER)


def test_full_lifecycle_with_receipt():
    expense = make_expense(amount="250.00")
    expense.add_attachment("https://files.example.com/hotel.pdf")
    expense.submit(EMPLOYEE)
    expense.approve(MANAGER, UserRole.MANAGER)

    assert expense.status == ExpenseStatus.APPROVED
    assert expense.attachment_urls == ["https://files.example.com/hotel.pdf"]
    assert expense.submitted_at <= expense.processed_at

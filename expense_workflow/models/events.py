"""
Domain events.

Returned by the ExpenseRequest mutators that move a request through
the approval workflow. The entity keeps no event buffer; whoever
calls the mutator owns the event and decides where it goes.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from expense_workflow.models.base import utcnow


@dataclass(frozen=True)
class ExpenseSubmitted:
    expense_id: uuid.UUID
    submitted_by: uuid.UUID
    amount: Decimal
    occurred_on: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ExpenseApproved:
    expense_id: uuid.UUID
    approved_by: uuid.UUID
    amount: Decimal
    occurred_on: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ExpenseRejected:
    expense_id: uuid.UUID
    rejected_by: uuid.UUID
    reason: str
    occurred_on: datetime = field(default_factory=utcnow)


DomainEvent = ExpenseSubmitted | ExpenseApproved | ExpenseRejected

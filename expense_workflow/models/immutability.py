"""
ORM-level append-only enforcement.

Audit records and comments are written once. These listeners
fire before SQLAlchemy sends an UPDATE or DELETE, so a change made
through the ORM aborts the flush and nothing reaches the database.
Registered on import of the models package.
"""

import logging

from sqlalchemy import event
from sqlalchemy.orm import object_session

from expense_workflow.exceptions import BusinessRuleError
from expense_workflow.models.audit_log import AuditLog
from expense_workflow.models.comment import ExpenseComment

logger = logging.getLogger(__name__)


def _has_changes(target) -> bool:
    session = object_session(target)
    if session is None:
        return False
    return session.is_modified(target, include_collections=False)


@event.listens_for(AuditLog, "before_update")
def _refuse_audit_update(mapper, connection, target):
    if _has_changes(target):
        logger.error("Refused update of audit record %s", target.external_id)
        raise BusinessRuleError("Audit records are append-only.")


@event.listens_for(AuditLog, "before_delete")
def _refuse_audit_delete(mapper, connection, target):
    logger.error("Refused delete of audit record %s", target.external_id)
    raise BusinessRuleError("Audit records are append-only.")


@event.listens_for(ExpenseComment, "before_update")
def _refuse_comment_update(mapper, connection, target):
    if _has_changes(target):
        raise BusinessRuleError("Comments cannot be edited.")

"""
Shared enumerations for database models.

Python enums mapped to database enums ensure that only valid
statuses and roles can be stored.
"""

import enum


class ExpenseStatus(str, enum.Enum):
    """Lifecycle of an expense request. APPROVED and REJECTED are terminal."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class UserRole(str, enum.Enum):
    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class AuditAction(str, enum.Enum):
    """Labels written to AuditLog.action."""
    CREATED = "Created"
    UPDATED = "Updated"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    ATTACHMENT_ADDED = "AttachmentAdded"
    ATTACHMENT_REMOVED = "AttachmentRemoved"
    DELETED = "Deleted"

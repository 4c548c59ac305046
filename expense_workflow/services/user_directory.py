"""
Identity lookup over the users table.

The workflow never manages credentials; it only asks who someone
is (display name) and what they may do (role). Unknown users
resolve to None rather than raising, so a caller can fall back to
whatever it already knows.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from expense_workflow.exceptions import BusinessRuleError
from expense_workflow.models.enums import UserRole
from expense_workflow.models.user import User


class UserDirectory:

    def __init__(self, db: Session):
        self.db = db

    def create_user(
        self, email: str, full_name: str = "", role: UserRole = UserRole.EMPLOYEE
    ) -> User:
        """Provision a user row. Raises BusinessRuleError on a duplicate email."""
        existing = self.db.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()
        if existing:
            raise BusinessRuleError(f"User with email '{email}' already exists")

        user = User(email=email, full_name=full_name, role=role)
        self.db.add(user)
        self.db.flush()
        return user

    def role_of(self, user_id: uuid.UUID) -> UserRole | None:
        user = self.db.get(User, user_id)
        return user.role if user else None

    def display_name_of(self, user_id: uuid.UUID) -> str | None:
        user = self.db.get(User, user_id)
        if not user:
            return None
        return user.full_name or user.email

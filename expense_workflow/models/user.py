"""
User model.

Rows of the identity store. Credentials are managed elsewhere;
the workflow only needs a display name and a role.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, Enum as SAEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from expense_workflow.models.base import Base, utcnow
from expense_workflow.models.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(
        String(200), nullable=False, default=""
    )
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role_enum", create_constraint=True),
        nullable=False,
        default=UserRole.EMPLOYEE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"

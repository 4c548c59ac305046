"""
Shared API dependencies.

Caller identity arrives in the X-User-Id and X-User-Role headers,
set by the authenticating gateway in front of this service.
unit_of_work() wraps one service call in a transaction and maps
domain errors to HTTP status codes.
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass

from fastapi import Header, HTTPException
from sqlalchemy.orm import Session

from expense_workflow.exceptions import BusinessRuleError, NotFoundError
from expense_workflow.models.enums import UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: uuid.UUID
    role: UserRole


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CurrentUser:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="User ID not found in request")
    if not x_user_role:
        raise HTTPException(status_code=401, detail="User role not found in request")
    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user ID")
    try:
        role = UserRole(x_user_role.upper())
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user role")
    return CurrentUser(id=user_id, role=role)


def require_reviewer(user: CurrentUser) -> None:
    if user.role not in (UserRole.MANAGER, UserRole.ADMIN):
        raise HTTPException(
            status_code=403, detail="Only managers or admins can do this"
        )


@contextmanager
def unit_of_work(db: Session):
    """
    Commit if the block succeeds, roll back if anything raises.

    NotFoundError becomes 404, BusinessRuleError becomes 400. Any
    other error is re-raised after the rollback.
    """
    try:
        yield
        db.commit()
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e)) from e
    except BusinessRuleError as e:
        db.rollback()
        logger.warning("Rejected by business rule: %s", e)
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception:
        db.rollback()
        raise

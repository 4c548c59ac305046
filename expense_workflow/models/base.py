"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db().
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from expense_workflow.config import get_settings
from expense_workflow.exceptions import BusinessRuleError

settings = get_settings()

# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles a restarted database or a stale connection.
connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # FastAPI may hand the session to a different worker thread
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

# --- Session Factory ---
# autocommit=False: the caller decides when a unit of work is
# committed, so an expense mutation and its audit record are
# saved together or not at all.
# autoflush=False: SQL is only sent on an explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form every column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value) -> datetime:
    """Coerce a date or (possibly aware) datetime to naive UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise TypeError(f"Expected a date or datetime, got {type(value).__name__}")


CENT = Decimal("0.01")


def to_money(value, label: str = "Amount") -> Decimal:
    """
    Coerce a monetary value to a Decimal in whole cents.

    Amount columns are Numeric(18, 2). A value with sub-cent digits
    would be rounded on write, so it is refused instead.
    """
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if amount != amount.quantize(CENT):
        raise BusinessRuleError(
            f"{label} cannot have more than 2 decimal places."
        )
    return amount.quantize(CENT)


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally guarantees the session is closed even if
    the endpoint raises, so connections never leak from the pool.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

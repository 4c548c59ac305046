"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Each test gets fresh tables and a session
that rolls back afterwards.
"""

import uuid
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from expense_workflow.main import app
from expense_workflow.models.base import Base, get_db
from expense_workflow.models.enums import UserRole
from expense_workflow.services.user_directory import UserDirectory


# SQLite keeps the suite free of database infrastructure
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the app uses
    the test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def users(db_session):
    """An employee, two managers and an admin in the identity store."""
    directory = UserDirectory(db_session)
    people = {
        "employee": directory.create_user(
            "emma@example.com", "Emma Employee", UserRole.EMPLOYEE
        ),
        "manager": directory.create_user(
            "mark@example.com", "Mark Manager", UserRole.MANAGER
        ),
        "other_manager": directory.create_user(
            "olga@example.com", "Olga Manager", UserRole.MANAGER
        ),
        "admin": directory.create_user(
            "ada@example.com", "Ada Admin", UserRole.ADMIN
        ),
    }
    db_session.commit()
    return people


@pytest.fixture
def headers_for():
    """Build the identity headers the gateway would set for a caller."""
    def build(user_id: uuid.UUID, role: UserRole | str) -> dict:
        role = role.value if isinstance(role, UserRole) else role
        return {"X-User-Id": str(user_id), "X-User-Role": role}
    return build

"""
Test configuration and shared fixtures for the Diagnostic Center test suite.

Tests run against an in-memory SQLite database by default; set
TEST_DATABASE_URL to run them against PostgreSQL. Each test gets a freshly
created schema.
"""

import os

# Must be set before any application module creates the engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from decimal import Decimal
from typing import Generator, List, Optional

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base
from models import Branch, Doctor, LabTest, Patient, User
from models.enums import TestCategory, UserRole


# Test database URL
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")


def _test_engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,  # Every session shares the one in-memory connection
        }
    return {}


@pytest.fixture(scope="session")
def db_engine():
    """
    Create a database engine for the test session.

    This engine is shared across all tests for performance.
    """
    engine = create_engine(TEST_DATABASE_URL, echo=False, **_test_engine_options(TEST_DATABASE_URL))

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Provide a database session on a freshly created schema.

    Services commit and roll back on their own, so isolation comes from
    recreating the tables rather than from an outer transaction.
    """
    Base.metadata.create_all(bind=db_engine)
    TestingSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()

    yield session

    session.close()
    Base.metadata.drop_all(bind=db_engine)


@pytest.fixture
def client(db_session) -> Generator[TestClient, None, None]:
    """Create test client with database session override."""
    from core.database import get_db
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.pop(get_db, None)


def create_branch(db_session: Session, branch_code: str = "BR001", name: Optional[str] = None) -> Branch:
    """Create a branch row."""
    branch = Branch(branch_code=branch_code, name=name or f"Branch {branch_code}", is_active=True)
    db_session.add(branch)
    db_session.commit()
    return branch


def create_user(
    db_session: Session,
    role: str,
    branch_code: Optional[str] = None,
    username: Optional[str] = None,
    name: str = "Test User",
    email: Optional[str] = None,
    is_active: bool = True
) -> User:
    """Create a staff user with the given role and branch."""
    user = User(
        username=username or f"{role.lower()}_{branch_code or 'all'}",
        name=name,
        email=email,
        role=role,
        branch_code=branch_code,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


def create_doctor(
    db_session: Session,
    doctor_code: str = "DOC001",
    name: str = "Dr. Test",
    email: Optional[str] = "doctor@example.com",
    consultation_fee: Decimal = Decimal("500.00"),
    available_branches: Optional[List[str]] = None
) -> Doctor:
    """Create a doctor available at the given branches."""
    doctor = Doctor(
        doctor_code=doctor_code,
        name=name,
        specialization="General Medicine",
        email=email,
        consultation_fee=consultation_fee,
        commission_rate=Decimal("0"),
        available_branches=available_branches if available_branches is not None else ["BR001"],
        is_active=True,
    )
    db_session.add(doctor)
    db_session.commit()
    return doctor


def create_lab_test(
    db_session: Session,
    test_code: str = "TST001",
    test_name: str = "Complete Blood Count",
    price: Decimal = Decimal("1000.00"),
    commission_rate: Decimal = Decimal("10.00"),
    category: str = TestCategory.PATHOLOGY.value,
    is_active: bool = True
) -> LabTest:
    """Create a catalogue test."""
    lab_test = LabTest(
        test_code=test_code,
        test_name=test_name,
        category=category,
        price=price,
        commission_rate=commission_rate,
        is_active=is_active,
    )
    db_session.add(lab_test)
    db_session.commit()
    return lab_test


def create_patient(
    db_session: Session,
    branch_code: str = "BR001",
    patient_code: Optional[str] = None,
    name: str = "Test Patient"
) -> Patient:
    """Create a patient directly, bypassing the sequence generator."""
    patient = Patient(
        patient_code=patient_code or f"{branch_code}-PAT{db_session.query(Patient).count() + 1:03d}",
        name=name,
        branch_code=branch_code,
        is_active=True,
    )
    db_session.add(patient)
    db_session.commit()
    return patient


@pytest.fixture
def branches(db_session):
    """Two branches, BR001 and BR002."""
    return create_branch(db_session, "BR001", "Main Branch"), create_branch(db_session, "BR002", "City Branch")


@pytest.fixture
def admin_user(db_session):
    return create_user(db_session, UserRole.ADMIN.value, None, username="admin", name="Admin")


@pytest.fixture
def manager_br001(db_session):
    return create_user(db_session, UserRole.BRANCH_MANAGER.value, "BR001", username="manager1", name="Manager One")


@pytest.fixture
def opd_br001(db_session):
    return create_user(db_session, UserRole.OPD_STAFF.value, "BR001", username="opd1", name="OPD One")

"""Pytest configuration and fixtures.

Workflow tests race several sessions against each other, so the database is a
file-backed SQLite per test (an in-memory database would be private to one
connection). Set TEST_DATABASE_URL to run against PostgreSQL instead.
"""

import os
import tempfile

# Application modules build their engine at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{os.path.join(tempfile.gettempdir(), f'siades_api_test_{os.getpid()}.db')}",
)

import pytest
from sqlalchemy.orm import Session, sessionmaker

from siades_api.db.base import Base
from siades_api.db.session import create_db_engine
from siades_api.letters.workflow import WorkflowEngine
from siades_api.models import LetterType, Resident, User, UserRole

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture(scope="function")
def engine(tmp_path):
    """Create a fresh database for one test."""
    url = TEST_DATABASE_URL or f"sqlite:///{tmp_path / 'siades.db'}"
    engine = create_db_engine(url)
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test database."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _add_user(db: Session, name: str, email: str, role: UserRole) -> User:
    user = User(name=name, email=email, role=role.value, is_active=True)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db: Session) -> User:
    """Create an admin user."""
    return _add_user(db, "Admin Test", "admin@siades.test", UserRole.ADMIN)


@pytest.fixture
def operator(db: Session) -> User:
    """Create an operator user."""
    return _add_user(db, "Operator Test", "operator@siades.test", UserRole.OPERATOR)


@pytest.fixture
def kepala_desa(db: Session) -> User:
    """Create a village head user."""
    return _add_user(db, "Kepala Desa Test", "kepaladesa@siades.test", UserRole.KEPALA_DESA)


@pytest.fixture
def resident(db: Session) -> Resident:
    """Create an active resident."""
    resident = Resident(nik="3301010101010001", full_name="Budi Santoso", is_active=True)
    db.add(resident)
    db.commit()
    return resident


@pytest.fixture
def letter_type(db: Session) -> LetterType:
    """Create an active letter type."""
    letter_type = LetterType(
        name="Surat Keterangan Domisili",
        description="Surat keterangan tempat tinggal",
        is_active=True,
    )
    db.add(letter_type)
    db.commit()
    return letter_type


@pytest.fixture
def workflow(db: Session) -> WorkflowEngine:
    """Workflow engine over the test session."""
    return WorkflowEngine(db)


@pytest.fixture
def pending_request(workflow, letter_type, resident, operator):
    """A freshly filed request (pending, version 1)."""
    return workflow.create_request(
        letter_type_id=letter_type.id,
        resident_id=resident.id,
        purpose="Keperluan administrasi kependudukan",
        operator_id=operator.id,
    )


@pytest.fixture
def verified_request(workflow, pending_request, operator):
    """A verified request (version 2)."""
    return workflow.verify(pending_request.id, operator.id)

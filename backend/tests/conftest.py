"""Test configuration and fixtures."""

import itertools
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_eduportal.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eduportal.auth.service import AuthService
from eduportal.database import Base, enable_sqlite_foreign_keys, get_db
from eduportal.main import app
from eduportal.models import Subject, User, UserRole
from eduportal.services import FileStorage, chat_manager, get_storage


# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "TestPass123!"


@pytest.fixture
def engine():
    """Create a fresh in-memory database for every test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return FileStorage(upload_dir=tmp_path / "uploads", max_file_size=1024 * 1024)


@pytest.fixture
def client(session_factory, storage):
    """Test client with the database and file storage overridden."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    chat_manager._connections.clear()


@pytest.fixture
def make_user(db_session):
    """Factory creating users of any role."""
    counter = itertools.count(1)

    def _make(role=UserRole.student, email=None, password=TEST_PASSWORD,
              first_name="Test", last_name=None, **kwargs):
        n = next(counter)
        user = User(
            email=email or f"{role.value}{n}@example.com",
            first_name=first_name,
            last_name=last_name or f"{role.value.capitalize()}{n}",
            role=role,
            **kwargs
        )
        user.set_password(password)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.admin, email="admin@example.com", first_name="Ada", last_name="Admin")


@pytest.fixture
def director(make_user):
    return make_user(UserRole.director, email="director@example.com", first_name="Dana", last_name="Director")


@pytest.fixture
def teacher(make_user):
    return make_user(UserRole.teacher, email="teacher@example.com", first_name="Tom", last_name="Teacher")


@pytest.fixture
def student(make_user):
    return make_user(UserRole.student, email="student@example.com", first_name="Sam", last_name="Student")


@pytest.fixture
def other_student(make_user):
    return make_user(UserRole.student, email="student2@example.com", first_name="Sue", last_name="Student")


@pytest.fixture
def auth_headers(db_session):
    """Build an Authorization header for a user."""
    def _headers(user):
        token = AuthService(db_session).create_user_access_token(user)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def subject(db_session, teacher):
    subject = Subject(name="Chemistry", short_name="CHEM", teacher_id=teacher.id, room_number="Lab 1", color="#10b981")
    db_session.add(subject)
    db_session.commit()
    db_session.refresh(subject)
    return subject

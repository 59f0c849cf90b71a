"""Tests for the authentication system."""
from datetime import timedelta

import pytest
from fastapi import status
from jose import jwt

from eduportal.auth.models import ALGORITHM, SECRET_KEY, LoginAttempt, RefreshToken, UserRegister
from eduportal.auth.service import AuthService, decode_access_token, get_user_from_token
from eduportal.config import settings
from eduportal.database import utcnow
from eduportal.models import User, UserRole

from .conftest import TEST_PASSWORD


def login(client, email, password=TEST_PASSWORD):
    return client.post(
        "/api/login",
        data={"username": email, "password": password},
        headers={"content-type": "application/x-www-form-urlencoded"}
    )


@pytest.fixture
def auth_service(db_session):
    return AuthService(db_session)


def test_register_user(client):
    """Test user registration."""
    payload = {
        "email": "newuser@example.com",
        "password": "NewPass123!",
        "first_name": "New",
        "last_name": "User",
        "role": "teacher",
    }
    response = client.post("/api/register", json=payload)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert "id" in data
    assert data["email"] == "newuser@example.com"
    assert data["role"] == "teacher"
    assert data["full_name"] == "New User"
    assert "hashed_password" not in data

    # Duplicate email
    response = client.post("/api/register", json={**payload, "password": "AnotherPass123!"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_register_defaults_to_student(client):
    response = client.post("/api/register", json={
        "email": "plain@example.com",
        "password": "NewPass123!",
        "first_name": "Plain",
        "last_name": "User",
    })
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["role"] == "student"


@pytest.mark.parametrize("role", ["admin", "director"])
def test_register_privileged_role_forbidden(client, role):
    response = client.post("/api/register", json={
        "email": f"{role}@example.org",
        "password": "NewPass123!",
        "first_name": "Sneaky",
        "last_name": "User",
        "role": role,
    })
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_register_weak_password(client):
    response = client.post("/api/register", json={
        "email": "weak@example.com",
        "password": "password",
        "first_name": "Weak",
        "last_name": "User",
    })
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Validation error"


def test_login(client, student, db_session):
    """Test user login and token generation."""
    response = login(client, student.email)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"

    claims = jwt.decode(data["access_token"], SECRET_KEY, algorithms=[ALGORITHM])
    assert claims["sub"] == student.email
    assert claims["user_id"] == student.id
    assert claims["role"] == "student"

    db_session.expire_all()
    assert db_session.get(User, student.id).last_login is not None
    assert db_session.query(LoginAttempt).filter_by(user_id=student.id, success=True).count() == 1

    response = login(client, student.email, "wrongpassword")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_login_unknown_email(client):
    response = login(client, "nobody@example.com")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_login_inactive_user(client, make_user):
    user = make_user(UserRole.student, is_active=False)
    response = login(client, user.email)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_account_locks_after_repeated_failures(client, student, db_session):
    for _ in range(settings.LOGIN_LOCK_THRESHOLD):
        assert login(client, student.email, "WrongPass1!").status_code == status.HTTP_401_UNAUTHORIZED

    db_session.expire_all()
    locked = db_session.get(User, student.id)
    assert locked.locked_until is not None
    assert locked.is_locked()

    # Even the right password is refused while locked
    response = login(client, student.email)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_expired_lock_restarts_failure_count(client, student, db_session):
    student.failed_login_attempts = settings.LOGIN_LOCK_THRESHOLD
    student.locked_until = utcnow() - timedelta(minutes=1)
    db_session.commit()

    assert login(client, student.email, "WrongPass1!").status_code == status.HTTP_401_UNAUTHORIZED

    db_session.expire_all()
    user = db_session.get(User, student.id)
    assert user.failed_login_attempts == 1
    assert not user.is_locked()
    assert login(client, student.email).status_code == status.HTTP_200_OK


def test_successful_login_resets_failures(client, student, db_session):
    login(client, student.email, "WrongPass1!")
    login(client, student.email, "WrongPass1!")
    assert login(client, student.email).status_code == status.HTTP_200_OK
    db_session.expire_all()
    assert db_session.get(User, student.id).failed_login_attempts == 0


def test_refresh_token(client, student):
    """Test token refresh functionality."""
    refresh_token = login(client, student.email).json()["refresh_token"]

    response = client.post("/api/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert data["refresh_token"] == refresh_token
    assert data["token_type"] == "bearer"

    response = client.post("/api/refresh", json={"refresh_token": "invalid_token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_expired_refresh_token(client, student, db_session):
    refresh_token = login(client, student.email).json()["refresh_token"]
    token = db_session.query(RefreshToken).filter_by(token=refresh_token).one()
    token.expires_at = utcnow() - timedelta(minutes=1)
    db_session.commit()

    response = client.post("/api/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_logout_revokes_refresh_token(client, student):
    refresh_token = login(client, student.email).json()["refresh_token"]

    response = client.post("/api/logout", json={"refresh_token": refresh_token})
    assert response.status_code == status.HTTP_200_OK

    response = client.post("/api/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_protected_endpoint(client, student):
    """Test access to protected endpoints."""
    access_token = login(client, student.email).json()["access_token"]

    response = client.get("/api/user", headers={"Authorization": f"Bearer {access_token}"})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["email"] == student.email
    assert data["name"] == "Sam Student"

    response = client.get("/api/user", headers={"Authorization": "Bearer invalid_token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = client.get("/api/user")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_refresh_token_cannot_be_used_as_access_token(client, student):
    refresh_token = login(client, student.email).json()["refresh_token"]
    response = client.get("/api/user", headers={"Authorization": f"Bearer {refresh_token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_change_password(client, student, auth_headers):
    """Test changing password."""
    response = client.post(
        "/api/change-password",
        json={"current_password": "WrongPass123!", "new_password": "NewSecurePass123!"},
        headers=auth_headers(student),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.post(
        "/api/change-password",
        json={"current_password": TEST_PASSWORD, "new_password": "NewSecurePass123!"},
        headers=auth_headers(student),
    )
    assert response.status_code == status.HTTP_204_NO_CONTENT

    assert login(client, student.email, "NewSecurePass123!").status_code == status.HTTP_200_OK
    assert login(client, student.email).status_code == status.HTTP_401_UNAUTHORIZED


def test_require_roles_rejects_other_roles(client, student, auth_headers):
    response = client.get("/api/users", headers=auth_headers(student))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Insufficient permissions"


class TestAuthService:

    def test_register_user_hashes_password(self, auth_service):
        user = auth_service.register_user(UserRegister(
            email="service@example.com",
            password="Service123!",
            first_name="Service",
            last_name="User",
        ))
        assert user.id is not None
        assert user.hashed_password != "Service123!"
        assert user.verify_password("Service123!")

    def test_access_token_round_trip(self, auth_service, teacher, db_session):
        token = auth_service.create_user_access_token(teacher)
        token_data = decode_access_token(token)
        assert token_data.user_id == teacher.id
        assert token_data.role == UserRole.teacher
        assert get_user_from_token(db_session, token).id == teacher.id

    def test_get_user_from_bad_token(self, db_session):
        assert get_user_from_token(db_session, "not-a-token") is None

    def test_expired_access_token(self, auth_service, teacher, db_session):
        token = auth_service.create_access_token(
            data={"sub": teacher.email, "user_id": teacher.id, "role": teacher.role.value},
            expires_delta=timedelta(minutes=-1),
        )
        assert get_user_from_token(db_session, token) is None

    def test_revoke_unknown_token_is_noop(self, auth_service):
        auth_service.revoke_refresh_token("missing")

"""Tests for the user management endpoints."""
from fastapi import status

from eduportal.models import ActivityLog, Notification, User, UserRole


def test_list_users_requires_oversight(client, admin, director, teacher, student, auth_headers):
    for user in (admin, director):
        response = client.get("/api/users", headers=auth_headers(user))
        assert response.status_code == status.HTTP_200_OK
        emails = [u["email"] for u in response.json()]
        assert set(emails) == {admin.email, director.email, teacher.email, student.email}
        assert all("name" in u and "hashed_password" not in u for u in response.json())

    for user in (teacher, student):
        response = client.get("/api/users", headers=auth_headers(user))
        assert response.status_code == status.HTTP_403_FORBIDDEN


def test_list_users_newest_first(client, admin, make_user, auth_headers):
    later = make_user()
    response = client.get("/api/users", headers=auth_headers(admin))
    assert response.json()[0]["id"] == later.id


def test_chat_users_excludes_self(client, student, teacher, make_user, auth_headers):
    inactive = make_user(is_active=False)
    response = client.get("/api/users/chat", headers=auth_headers(student))
    assert response.status_code == status.HTTP_200_OK
    ids = [u["id"] for u in response.json()]
    assert teacher.id in ids
    assert student.id not in ids
    assert inactive.id not in ids


def test_get_user_self_or_oversight(client, student, other_student, director, auth_headers):
    response = client.get(f"/api/users/{student.id}", headers=auth_headers(student))
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == "Sam Student"

    response = client.get(f"/api/users/{other_student.id}", headers=auth_headers(student))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.get(f"/api/users/{student.id}", headers=auth_headers(director))
    assert response.status_code == status.HTTP_200_OK

    response = client.get("/api/users/9999", headers=auth_headers(director))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_admin_creates_user(client, admin, make_user, auth_headers, db_session):
    other_admin = make_user(UserRole.admin)
    response = client.post(
        "/api/users",
        json={
            "email": "created@example.com",
            "password": "Created123!",
            "first_name": "Created",
            "last_name": "Person",
            "role": "teacher",
        },
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["role"] == "teacher"

    created = db_session.get(User, data["id"])
    assert created.verify_password("Created123!")

    notes = db_session.query(Notification).filter_by(title="New User Registered").all()
    assert [n.user_id for n in notes] == [other_admin.id]
    log = db_session.query(ActivityLog).filter_by(type="user_created").one()
    assert log.related_id == created.id


def test_create_user_duplicate_email(client, admin, student, auth_headers):
    response = client.post(
        "/api/users",
        json={
            "email": student.email,
            "password": "Created123!",
            "first_name": "Dup",
            "last_name": "Licate",
        },
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_user_requires_admin(client, director, auth_headers):
    response = client.post(
        "/api/users",
        json={"email": "x@example.com", "password": "Created123!", "first_name": "X", "last_name": "Y"},
        headers=auth_headers(director),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_create_user_invalid_payload(client, admin, auth_headers):
    response = client.post(
        "/api/users",
        json={"email": "not-an-email", "password": "short", "first_name": "", "last_name": "Y"},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["detail"] == "Validation error"
    assert len(body["errors"]) >= 3


def test_update_user(client, admin, student, auth_headers, db_session):
    response = client.put(
        f"/api/users/{student.id}",
        json={"first_name": "Samuel", "password": "Changed123!"},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["first_name"] == "Samuel"

    db_session.expire_all()
    updated = db_session.get(User, student.id)
    assert updated.verify_password("Changed123!")
    assert db_session.query(Notification).filter_by(user_id=student.id, title="Profile Updated").count() == 1


def test_update_user_ignores_null_for_required_fields(client, admin, student, auth_headers):
    response = client.put(
        f"/api/users/{student.id}",
        json={"first_name": None, "email": None, "role": None, "is_active": None, "last_name": "Stone"},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["first_name"] == student.first_name
    assert data["email"] == student.email
    assert data["role"] == "student"
    assert data["last_name"] == "Stone"


def test_update_user_email_conflict(client, admin, student, other_student, auth_headers):
    response = client.put(
        f"/api/users/{student.id}",
        json={"email": other_student.email},
        headers=auth_headers(admin),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_missing_user(client, admin, auth_headers):
    response = client.put("/api/users/9999", json={"first_name": "Ghost"}, headers=auth_headers(admin))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_user(client, admin, student, auth_headers, db_session):
    response = client.delete(f"/api/users/{student.id}", headers=auth_headers(admin))
    assert response.status_code == status.HTTP_204_NO_CONTENT
    db_session.expire_all()
    assert db_session.get(User, student.id) is None

    response = client.delete(f"/api/users/{student.id}", headers=auth_headers(admin))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_admin_cannot_delete_self(client, admin, auth_headers):
    response = client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin))
    assert response.status_code == status.HTTP_400_BAD_REQUEST

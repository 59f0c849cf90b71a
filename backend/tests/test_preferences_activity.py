"""Tests for user preferences and activity logs."""
from fastapi import status

from eduportal.models import ActivityLog, UserPreferences


class TestPreferences:

    def test_defaults_when_nothing_stored(self, client, student, auth_headers, db_session):
        response = client.get("/api/user-preferences", headers=auth_headers(student))
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] is None
        assert data["user_id"] == student.id
        assert data["theme"] == "light"
        assert data["notifications_enabled"] is True
        assert db_session.query(UserPreferences).count() == 0

    def test_create_then_conflict(self, client, student, auth_headers):
        response = client.post(
            "/api/user-preferences", json={"theme": "dark", "grade_notifications": False},
            headers=auth_headers(student),
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["theme"] == "dark"
        assert data["grade_notifications"] is False
        assert data["language"] == "en"

        response = client.post("/api/user-preferences", json={"theme": "light"}, headers=auth_headers(student))
        assert response.status_code == status.HTTP_409_CONFLICT

        assert client.get("/api/user-preferences", headers=auth_headers(student)).json()["theme"] == "dark"

    def test_put_upserts(self, client, student, auth_headers):
        response = client.put("/api/user-preferences", json={"language": "ru"}, headers=auth_headers(student))
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["language"] == "ru"

        response = client.put(
            "/api/user-preferences", json={"theme": "system", "language": None}, headers=auth_headers(student),
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["theme"] == "system"
        assert response.json()["language"] == "ru"

    def test_invalid_theme(self, client, student, auth_headers):
        response = client.put("/api/user-preferences", json={"theme": "neon"}, headers=auth_headers(student))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_preferences_are_per_user(self, client, student, other_student, auth_headers):
        client.put("/api/user-preferences", json={"theme": "dark"}, headers=auth_headers(student))
        response = client.get("/api/user-preferences", headers=auth_headers(other_student))
        assert response.json()["theme"] == "light"

    def test_requires_authentication(self, client):
        response = client.get("/api/user-preferences")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestActivityLogs:

    def add_logs(self, db_session, admin, teacher):
        db_session.add_all([
            ActivityLog(user_id=admin.id, type="user_created", description="first"),
            ActivityLog(user_id=teacher.id, type="assignment_created", description="second"),
            ActivityLog(user_id=admin.id, type="schedule_imported", description="third"),
        ])
        db_session.commit()

    def test_recent_newest_first(self, client, admin, teacher, auth_headers, db_session):
        self.add_logs(db_session, admin, teacher)

        response = client.get("/api/activity-logs", headers=auth_headers(admin))
        assert [log["description"] for log in response.json()] == ["third", "second", "first"]

        response = client.get("/api/activity-logs", params={"limit": 2}, headers=auth_headers(admin))
        assert len(response.json()) == 2

    def test_filters(self, client, admin, teacher, director, auth_headers, db_session):
        self.add_logs(db_session, admin, teacher)

        response = client.get("/api/activity-logs/type/assignment_created", headers=auth_headers(director))
        assert [log["description"] for log in response.json()] == ["second"]

        response = client.get(f"/api/activity-logs/user/{admin.id}", headers=auth_headers(director))
        assert [log["description"] for log in response.json()] == ["third", "first"]

    def test_limit_bounds(self, client, admin, auth_headers):
        for limit in (0, 101):
            response = client.get("/api/activity-logs", params={"limit": limit}, headers=auth_headers(admin))
            assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_restricted_to_oversight(self, client, teacher, auth_headers):
        response = client.get("/api/activity-logs", headers=auth_headers(teacher))
        assert response.status_code == status.HTTP_403_FORBIDDEN

"""Tests for notifications and the notification service."""
import pytest
from fastapi import status

from eduportal.models import Notification, NotificationCategory, UserPreferences, UserRole
from eduportal.services import NotificationService


@pytest.fixture
def notifications(db_session, student, teacher):
    items = [
        Notification(user_id=student.id, title="First", content="one"),
        Notification(user_id=student.id, title="Second", content="two", is_read=True),
        Notification(user_id=student.id, title="Third", content="three"),
        Notification(user_id=teacher.id, title="Teacher only", content="four"),
    ]
    db_session.add_all(items)
    db_session.commit()
    return items


class TestNotificationEndpoints:

    def test_list_newest_first(self, client, notifications, student, auth_headers):
        response = client.get("/api/notifications", headers=auth_headers(student))
        assert [n["title"] for n in response.json()] == ["Third", "Second", "First"]

        response = client.get("/api/notifications/unread", headers=auth_headers(student))
        assert [n["title"] for n in response.json()] == ["Third", "First"]

    def test_user_scoped_lists(self, client, notifications, student, teacher, auth_headers):
        response = client.get(f"/api/notifications/user/{student.id}", headers=auth_headers(student))
        assert len(response.json()) == 3
        response = client.get(f"/api/notifications/unread/user/{student.id}", headers=auth_headers(student))
        assert len(response.json()) == 2

        response = client.get(f"/api/notifications/user/{student.id}", headers=auth_headers(teacher))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_reads_any_users_notifications(self, client, notifications, student, admin, teacher, auth_headers):
        response = client.get(f"/api/users/{student.id}/notifications", headers=auth_headers(admin))
        assert len(response.json()) == 3

        response = client.get(f"/api/users/{student.id}/notifications", headers=auth_headers(teacher))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_create_notification_ignores_preferences(self, client, teacher, student, auth_headers, db_session):
        db_session.add(UserPreferences(user_id=student.id, notifications_enabled=False))
        db_session.commit()

        response = client.post(
            "/api/notifications",
            json={"user_id": student.id, "title": "Exam moved", "content": "Friday instead of Monday"},
            headers=auth_headers(teacher),
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["is_read"] is False

    def test_create_notification_permissions(self, client, student, other_student, auth_headers):
        response = client.post(
            "/api/notifications",
            json={"user_id": other_student.id, "title": "Hey", "content": "Hi"},
            headers=auth_headers(student),
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_create_notification_unknown_user(self, client, admin, auth_headers):
        response = client.post(
            "/api/notifications", json={"user_id": 9999, "title": "Hey", "content": "Hi"}, headers=auth_headers(admin),
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.parametrize("method", ["post", "patch"])
    def test_mark_read(self, client, notifications, student, auth_headers, method):
        first = notifications[0]
        response = getattr(client, method)(f"/api/notifications/{first.id}/read", headers=auth_headers(student))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_read"] is True

    def test_cannot_touch_others_notifications(self, client, notifications, student, auth_headers):
        foreign = notifications[3]
        response = client.post(f"/api/notifications/{foreign.id}/read", headers=auth_headers(student))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        response = client.delete(f"/api/notifications/{foreign.id}", headers=auth_headers(student))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_mark_all_read(self, client, notifications, student, teacher, auth_headers, db_session):
        response = client.patch("/api/notifications/read-all", headers=auth_headers(student))
        assert response.json() == {"updated": 2}

        db_session.expire_all()
        assert db_session.query(Notification).filter_by(is_read=False).count() == 1
        assert db_session.query(Notification).filter_by(user_id=teacher.id, is_read=False).count() == 1

    def test_delete(self, client, notifications, student, auth_headers, db_session):
        response = client.delete(f"/api/notifications/{notifications[0].id}", headers=auth_headers(student))
        assert response.status_code == status.HTTP_204_NO_CONTENT
        response = client.delete(f"/api/notifications/{notifications[0].id}", headers=auth_headers(student))
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestNotificationService:

    def test_notify_without_preferences(self, db_session, student):
        notification = NotificationService(db_session).notify(student.id, "Hello", "World")
        db_session.commit()
        assert notification.id is not None
        assert notification.is_read is False

    def test_category_switch_suppresses(self, db_session, student):
        db_session.add(UserPreferences(user_id=student.id, task_notifications=False))
        db_session.commit()
        service = NotificationService(db_session)

        assert service.notify(student.id, "Task", "x", category=NotificationCategory.task) is None
        assert service.notify(student.id, "News", "x", category=NotificationCategory.system) is not None

    def test_master_switch_suppresses_everything(self, db_session, student):
        db_session.add(UserPreferences(user_id=student.id, notifications_enabled=False))
        db_session.commit()
        assert NotificationService(db_session).notify(student.id, "News", "x") is None

    def test_notify_many_deduplicates(self, db_session, student, teacher):
        created = NotificationService(db_session).notify_many([student.id, teacher.id, student.id], "Hi", "x")
        assert len(created) == 2

    def test_notify_admins_excludes_actor(self, db_session, admin, make_user):
        other = make_user(UserRole.admin)
        created = NotificationService(db_session).notify_admins("Heads up", "x", exclude=[admin.id])
        assert [n.user_id for n in created] == [other.id]

"""Tests for curriculum plans."""
import pytest
from fastapi import status

from eduportal.models import CurriculumPlan, EducationLevel, Notification, UserRole


@pytest.fixture
def plan(db_session, admin):
    plan = CurriculumPlan(
        specialty_name="Software Engineering",
        specialty_code="09.02.07",
        years_of_study=4,
        education_level=EducationLevel.spo,
        description="Full-time",
        calendar_data={"weeks": [1, 2]},
        created_by=admin.id,
    )
    db_session.add(plan)
    db_session.commit()
    db_session.refresh(plan)
    return plan


@pytest.fixture
def other_admin(make_user):
    return make_user(UserRole.admin, first_name="Otto", last_name="Admin")


class TestCurriculumReads:

    def test_list_ordered_by_code(self, client, plan, student, db_session, auth_headers):
        db_session.add(CurriculumPlan(
            specialty_name="Accounting", specialty_code="01.01.01", education_level=EducationLevel.vo,
        ))
        db_session.commit()

        response = client.get("/api/curriculum-plans", headers=auth_headers(student))
        assert response.status_code == status.HTTP_200_OK
        assert [p["specialty_code"] for p in response.json()] == ["01.01.01", "09.02.07"]

    def test_get_plan(self, client, plan, teacher, auth_headers):
        response = client.get(f"/api/curriculum-plans/{plan.id}", headers=auth_headers(teacher))
        data = response.json()
        assert data["education_level"] == "СПО"
        assert data["calendar_data"] == {"weeks": [1, 2]}

        response = client.get("/api/curriculum-plans/9999", headers=auth_headers(teacher))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_filter_by_education_level(self, client, plan, student, auth_headers):
        response = client.get("/api/curriculum-plans/education-level/СПО", headers=auth_headers(student))
        assert [p["id"] for p in response.json()] == [plan.id]

        response = client.get("/api/curriculum-plans/education-level/ВО", headers=auth_headers(student))
        assert response.json() == []

        response = client.get("/api/curriculum-plans/education-level/college", headers=auth_headers(student))
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestCurriculumChanges:

    def test_create_plan(self, client, admin, other_admin, auth_headers, db_session):
        response = client.post(
            "/api/curriculum-plans",
            json={
                "specialty_name": "Nursing",
                "specialty_code": "34.02.01",
                "years_of_study": 3,
                "education_level": "ВО",
            },
            headers=auth_headers(admin),
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["created_by"] == admin.id
        assert data["calendar_data"] == {}
        assert data["curriculum_plan_data"] == {}

        notes = db_session.query(Notification).filter_by(title="New Curriculum Plan").all()
        assert [n.user_id for n in notes] == [other_admin.id]
        assert notes[0].content == "Ada Admin created the curriculum plan 34.02.01 Nursing"

    @pytest.mark.parametrize("payload", [
        {"specialty_name": "X", "specialty_code": "1", "education_level": "college"},
        {"specialty_name": "X", "specialty_code": "1", "education_level": "ВО", "years_of_study": 9},
        {"specialty_code": "1", "education_level": "ВО"},
    ])
    def test_create_invalid(self, client, admin, auth_headers, payload):
        response = client.post("/api/curriculum-plans", json=payload, headers=auth_headers(admin))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_requires_admin(self, client, director, auth_headers):
        response = client.post(
            "/api/curriculum-plans",
            json={"specialty_name": "X", "specialty_code": "1", "education_level": "ВО"},
            headers=auth_headers(director),
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.parametrize("method", ["put", "patch"])
    def test_update(self, client, plan, admin, other_admin, auth_headers, db_session, method):
        response = getattr(client, method)(
            f"/api/curriculum-plans/{plan.id}",
            json={"specialty_name": None, "years_of_study": 5, "description": None},
            headers=auth_headers(admin),
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["specialty_name"] == "Software Engineering"
        assert data["years_of_study"] == 5
        assert data["description"] is None

        notes = db_session.query(Notification).filter_by(user_id=other_admin.id).all()
        assert [n.title for n in notes] == ["Curriculum Plan Updated"]

    def test_update_via_method_override(self, client, plan, admin, auth_headers):
        url = f"/api/curriculum-plans/{plan.id}"
        response = client.post(url, json={"_method": "PUT", "years_of_study": 2}, headers=auth_headers(admin))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["years_of_study"] == 2

        for body in ({"years_of_study": 3}, {"_method": "DELETE", "years_of_study": 3}):
            response = client.post(url, json=body, headers=auth_headers(admin))
            assert response.status_code == status.HTTP_400_BAD_REQUEST

        assert client.get(url, headers=auth_headers(admin)).json()["years_of_study"] == 2

    def test_null_keeps_json_documents(self, client, plan, admin, auth_headers):
        response = client.put(
            f"/api/curriculum-plans/{plan.id}",
            json={"calendar_data": None, "curriculum_plan_data": None, "education_level": None},
            headers=auth_headers(admin),
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["calendar_data"] == {"weeks": [1, 2]}
        assert data["curriculum_plan_data"] == {}
        assert data["education_level"] == "СПО"

    def test_save_weeks(self, client, plan, admin, auth_headers):
        weeks = {"weeks": [{"number": 1, "type": "study"}, {"number": 2, "type": "exam"}]}
        response = client.post(
            "/api/curriculum-plans/weeks",
            json={"plan_id": plan.id, "calendar_data": weeks},
            headers=auth_headers(admin),
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["calendar_data"] == weeks

        response = client.post(
            "/api/curriculum-plans/weeks", json={"plan_id": 9999, "calendar_data": {}}, headers=auth_headers(admin),
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete(self, client, plan, admin, other_admin, auth_headers, db_session):
        response = client.delete(f"/api/curriculum-plans/{plan.id}", headers=auth_headers(admin))
        assert response.json() == {"message": "Curriculum plan deleted successfully", "plan_id": plan.id}

        assert db_session.query(CurriculumPlan).count() == 0
        assert db_session.query(Notification).filter_by(
            user_id=other_admin.id, title="Curriculum Plan Deleted",
        ).count() == 1

import pytest
from rest_framework.test import APIClient

from LearningManagementApp.domain.services import enrollment_service
from LearningManagementApp.tests.helpers import login, make_course

pytestmark = pytest.mark.django_db

REGISTER_URL = "/api/v1/auth/register/"
TOKEN_URL = "/api/v1/auth/token/"
COURSES_URL = "/api/v1/courses/"


def test_register_then_obtain_token():
    client = APIClient()
    resp = client.post(
        REGISTER_URL,
        {"email": "new@example.com", "password": "s3cret-pass", "first_name": "New"},
        format="json",
    )
    assert resp.status_code == 201
    assert resp.data["role"] == "LEARNER"

    token = client.post(TOKEN_URL, {"email": "new@example.com", "password": "s3cret-pass"}, format="json")
    assert token.status_code == 200
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.data['access']}")
    assert client.get("/api/v1/auth/me/").data["email"] == "new@example.com"


def test_operator_registration_requires_staff():
    resp = APIClient().post(
        REGISTER_URL,
        {"email": "op@example.com", "password": "s3cret-pass", "role": "OPERATOR"},
        format="json",
    )
    assert resp.status_code == 400
    assert "role" in resp.data


def test_anonymous_requests_rejected():
    resp = APIClient().get(COURSES_URL)
    assert resp.status_code == 401


def test_course_create_publish_and_catalogue(instructor, learner):
    t_client = login(instructor)
    resp = t_client.post(COURSES_URL, {"title": "Algebra", "description": ""}, format="json")
    assert resp.status_code == 201
    assert resp.data["status"] == "draft"
    course_id = resp.data["id"]

    publish = t_client.post(f"{COURSES_URL}{course_id}/status/", {"status": "published"}, format="json")
    assert publish.status_code == 400
    assert publish.data["code"] == "COURSE_PUBLISH_VALIDATION_ERROR"

    t_client.patch(f"{COURSES_URL}{course_id}/", {"description": "Linear equations"}, format="json")
    publish = t_client.post(f"{COURSES_URL}{course_id}/status/", {"status": "published"}, format="json")
    assert publish.status_code == 200
    assert publish.data["status"] == "published"

    catalogue = login(learner).get(f"{COURSES_URL}catalogue/")
    assert catalogue.status_code == 200
    assert catalogue.data["total"] == 1
    assert catalogue.data["courses"][0]["id"] == course_id
    assert catalogue.data["courses"][0]["is_enrolled"] is False


def test_duplicate_title_conflict(instructor):
    client = login(instructor)
    client.post(COURSES_URL, {"title": "Algebra"}, format="json")
    resp = client.post(COURSES_URL, {"title": "Algebra"}, format="json")
    assert resp.status_code == 409
    assert resp.data["code"] == "COURSE_TITLE_DUPLICATE"


def test_learner_cannot_manage_courses(instructor, learner):
    course = make_course(instructor)
    s_client = login(learner)
    assert s_client.post(COURSES_URL, {"title": "Mine"}, format="json").status_code == 403
    assert s_client.patch(f"{COURSES_URL}{course.pk}/", {"title": "Hack"}, format="json").status_code == 403


def test_other_instructor_gets_not_owner(instructor, other_instructor):
    course = make_course(instructor)
    resp = login(other_instructor).patch(f"{COURSES_URL}{course.pk}/", {"title": "Hack"}, format="json")
    assert resp.status_code == 403
    assert resp.data["code"] == "NOT_OWNER"


def test_enroll_cancel_and_status(instructor, learner):
    course = make_course(instructor)
    client = login(learner)
    first = client.post(f"{COURSES_URL}{course.pk}/enroll/")
    second = client.post(f"{COURSES_URL}{course.pk}/enroll/")
    assert first.status_code == second.status_code == 200
    assert first.data["id"] == second.data["id"]

    status = client.get(f"{COURSES_URL}{course.pk}/enrollment/")
    assert status.data["is_enrolled"] is True

    enrolled = client.get(f"{COURSES_URL}enrolled/")
    assert [c["id"] for c in enrolled.data["results"]] == [course.pk]

    cancelled = client.post(f"{COURSES_URL}{course.pk}/cancel-enrollment/")
    assert cancelled.data["status"] == "cancelled"
    again = client.post(f"{COURSES_URL}{course.pk}/cancel-enrollment/")
    assert again.status_code == 404
    assert again.data["code"] == "NOT_ENROLLED"


def test_enroll_draft_course_rejected(instructor, learner):
    course = make_course(instructor, publish=False)
    resp = login(learner).post(f"{COURSES_URL}{course.pk}/enroll/")
    assert resp.status_code == 400
    assert resp.data["code"] == "COURSE_NOT_PUBLISHED"


def test_delete_course_with_active_enrollment_conflicts(instructor, learner):
    course = make_course(instructor)
    enrollment_service.enroll(learner, course.pk)
    client = login(instructor)
    resp = client.delete(f"{COURSES_URL}{course.pk}/")
    assert resp.status_code == 409
    assert resp.data["code"] == "HAS_ACTIVE_ENROLLMENTS"

    enrollment_service.cancel(learner, course.pk)
    assert client.delete(f"{COURSES_URL}{course.pk}/").status_code == 204
    assert client.get(f"{COURSES_URL}{course.pk}/").status_code == 404


def test_instructor_list_shows_own_courses(instructor, other_instructor):
    make_course(instructor, title="Mine")
    make_course(other_instructor, title="Theirs")
    resp = login(instructor).get(COURSES_URL)
    assert [c["title"] for c in resp.data["results"]] == ["Mine"]
    assert resp.data["results"][0]["active_enrollments"] == 0

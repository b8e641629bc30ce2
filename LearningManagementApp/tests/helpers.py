from datetime import timedelta

from django.utils import timezone
from model_bakery import baker
from rest_framework.test import APIClient

from LearningManagementApp.core.choices import AssignmentStatus, CourseStatus, UserRole
from LearningManagementApp.domain.services import assignment_service, course_service

PASSWORD = "pass1234"


def make_user(role=UserRole.LEARNER, **kwargs):
    user = baker.make("users.User", role=role, **kwargs)
    user.set_password(PASSWORD)
    user.save()
    return user


def in_days(days):
    return timezone.now() + timedelta(days=days)


def make_course(owner, title="Intro", description="Basics", publish=True, **extra):
    course = course_service.create_course(owner, {"title": title, "description": description, **extra})
    if publish:
        course = course_service.change_status(course.pk, owner, CourseStatus.PUBLISHED)
    return course


def make_assignment(owner, course, weight=0.5, publish=True, **extra):
    data = {
        "title": extra.pop("title", f"Assignment {weight}"),
        "due_date": extra.pop("due_date", in_days(7)),
        "points_weight": weight,
    }
    data.update(extra)
    assignment = assignment_service.create_assignment(owner, course.pk, data)
    if publish:
        assignment = assignment_service.change_assignment_status(owner, assignment.pk, AssignmentStatus.PUBLISHED)
    return assignment


def login(user):
    client = APIClient()
    token = client.post(
        "/api/v1/auth/token/", {"email": user.email, "password": PASSWORD}, format="json"
    ).data["access"]
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client

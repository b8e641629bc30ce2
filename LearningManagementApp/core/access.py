"""Role & object access helpers."""

from typing import Any

from LearningManagementApp.core.choices import EnrollmentStatus
from LearningManagementApp.courses.models import Course, Enrollment
from LearningManagementApp.learning.models import Assignment, Submission


def course_from(obj: Any) -> Course | None:
    if obj is None:
        return None
    if isinstance(obj, Course):
        return obj
    if isinstance(obj, Assignment):
        return obj.course
    if isinstance(obj, Submission):
        return obj.assignment.course
    if isinstance(obj, Enrollment):
        return obj.course
    return getattr(obj, "course", None)


def is_owner(user, course: Course | None) -> bool:
    return bool(user and course and course.owner_id == user.id)


def is_active_learner(user, course: Course | None) -> bool:
    if not (user and course):
        return False
    return Enrollment.objects.filter(course=course, learner=user, status=EnrollmentStatus.ACTIVE).exists()


def is_submission_participant(user, obj: Any) -> bool:
    """User wrote the submission or owns the course it belongs to."""
    if isinstance(obj, Submission) and obj.learner_id == user.id:
        return True
    return is_owner(user, course_from(obj))

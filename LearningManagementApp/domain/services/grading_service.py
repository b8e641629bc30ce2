"""Weighted course totals and per-assignment grade rows for learners.

Only published, live assignments count. A graded submission contributes
``score * points_weight / 100``; the course total is the sum of contributions
divided by the sum of graded weights, scaled back to 0-100. Ungraded work is
left out of the denominator, so the total reflects performance so far.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal

from LearningManagementApp.core.choices import AssignmentStatus, SubmissionStatus
from LearningManagementApp.courses.models import Enrollment
from LearningManagementApp.learning.models import Assignment, Submission

logger = logging.getLogger(__name__)


def round_half_up(value):
    """Round to one decimal place, halves away from zero (80.25 -> 80.3)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _weighted_total(rows):
    # Same as sum(score * w / 100) / sum(w) * 100.
    weighted = 0.0
    graded_weight = 0.0
    for score, weight in rows:
        weighted += score * weight
        graded_weight += weight
    if graded_weight <= 0:
        return None
    return round_half_up(weighted / graded_weight)


def compute_course_total(learner, course_id):
    """Return ``{"total_score", "assignments_count", "graded_count"}`` for one course.

    ``total_score`` is None while nothing is graded.
    """
    assignments = Assignment.objects.for_course(course_id).published().filter(course__deleted_at__isnull=True)
    graded = list(
        Submission.objects.filter(
            assignment__in=assignments, learner=learner, status=SubmissionStatus.GRADED, score__isnull=False
        ).values_list("score", "assignment__points_weight")
    )
    return {
        "total_score": _weighted_total(graded),
        "assignments_count": assignments.count(),
        "graded_count": len(graded),
    }


def _assignment_row(submission):
    assignment = submission.assignment
    return {
        "submission_id": submission.pk,
        "assignment_id": assignment.pk,
        "assignment_title": assignment.title,
        "assignment_description": assignment.description,
        "course_id": assignment.course_id,
        "course_title": assignment.course.title,
        "score": submission.score,
        "feedback": submission.feedback,
        "graded_at": submission.graded_at,
        "is_late": submission.is_late,
        "is_resubmission": submission.is_resubmission,
        "status": submission.status,
        "points_weight": assignment.points_weight,
    }


def learner_grades(learner, course_id=None):
    """Course totals and flat assignment rows across the learner's active enrollments."""
    enrollments = (
        Enrollment.objects.filter(learner=learner, course__deleted_at__isnull=True)
        .active()
        .select_related("course")
        .order_by("course__title", "course_id")
    )
    if course_id is not None:
        enrollments = enrollments.filter(course_id=course_id)
    courses = [e.course for e in enrollments]

    submissions = (
        Submission.objects.filter(
            learner=learner,
            assignment__course__in=courses,
            assignment__status=AssignmentStatus.PUBLISHED,
            assignment__deleted_at__isnull=True,
        )
        .select_related("assignment", "assignment__course")
        .order_by("assignment__course__title", "assignment__due_date", "pk")
    )
    return {
        "courses": [
            {"course_id": c.pk, "course_title": c.title, **compute_course_total(learner, c.pk)}
            for c in courses
        ],
        "assignments": [_assignment_row(s) for s in submissions],
    }

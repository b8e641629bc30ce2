"""Transition tables for courses, assignments and submissions.

Every rule about which status may follow which, and what happens on the way,
lives here. Services load rows, call ``<MACHINE>.apply`` and save.
"""

from datetime import datetime

from simple_history.utils import bulk_update_with_history

from LearningManagementApp.core.choices import AssignmentStatus, CourseStatus, SubmissionStatus
from LearningManagementApp.core.errors import (
    AssignmentPastDeadline,
    DomainValidationError,
    ResubmissionNotAllowed,
)
from LearningManagementApp.core.state_machine import StateMachine, Transition
from LearningManagementApp.courses.models import Course
from LearningManagementApp.learning.models import Assignment, Submission


# ---------- Assignment ----------
def _require_future_due_date(assignment: Assignment, now: datetime) -> None:
    if assignment.due_date is None or assignment.due_date <= now:
        raise AssignmentPastDeadline()

def _stamp_published(assignment: Assignment, now: datetime) -> None:
    if assignment.published_at is None:
        assignment.published_at = now

def _stamp_closed(assignment: Assignment, now: datetime) -> None:
    assignment.closed_at = now

ASSIGNMENT_LIFECYCLE = StateMachine(
    "Assignment",
    AssignmentStatus.values,
    [
        Transition(AssignmentStatus.DRAFT, AssignmentStatus.PUBLISHED,
                   guard=_require_future_due_date, effect=_stamp_published),
        Transition(AssignmentStatus.DRAFT, AssignmentStatus.CLOSED, effect=_stamp_closed),
        Transition(AssignmentStatus.PUBLISHED, AssignmentStatus.CLOSED, effect=_stamp_closed),
    ],
)


# ---------- Course ----------
def _require_publishable(course: Course, now: datetime) -> None:
    if not (course.title or "").strip() or not (course.description or "").strip():
        raise DomainValidationError(
            "Title and description are required to publish a course.",
            code="COURSE_PUBLISH_VALIDATION_ERROR",
        )

def _stamp_course_published(course: Course, now: datetime) -> None:
    course.published_at = now

def _archive_and_close_assignments(course: Course, now: datetime) -> None:
    """Archive the course and close every published assignment in it."""
    course.archived_at = now
    closing = list(
        Assignment.objects.select_for_update().filter(course=course, status=AssignmentStatus.PUBLISHED)
    )
    for assignment in closing:
        ASSIGNMENT_LIFECYCLE.apply(assignment, AssignmentStatus.CLOSED, now=now)
        assignment.updated_at = now
    if closing:
        bulk_update_with_history(closing, Assignment, ["status", "closed_at", "updated_at"])

def _clear_archived(course: Course, now: datetime) -> None:
    course.archived_at = None

COURSE_LIFECYCLE = StateMachine(
    "Course",
    CourseStatus.values,
    [
        Transition(CourseStatus.DRAFT, CourseStatus.PUBLISHED,
                   guard=_require_publishable, effect=_stamp_course_published),
        Transition(CourseStatus.PUBLISHED, CourseStatus.ARCHIVED, effect=_archive_and_close_assignments),
        Transition(CourseStatus.PUBLISHED, CourseStatus.DRAFT),
        Transition(CourseStatus.ARCHIVED, CourseStatus.DRAFT, effect=_clear_archived),
    ],
)


# ---------- Submission ----------
def _require_grade_fields(submission: Submission, now: datetime) -> None:
    score = submission.score
    if score is None or not (0 <= score <= 100):
        raise DomainValidationError("Score must be between 0 and 100.", code="INVALID_SCORE")
    if not (submission.feedback or "").strip():
        raise DomainValidationError("Feedback is required when grading.", code="FEEDBACK_REQUIRED")

def _stamp_graded(submission: Submission, now: datetime) -> None:
    submission.graded_at = now

def _clear_score(submission: Submission, now: datetime) -> None:
    submission.score = None
    submission.graded_at = None

def _require_resubmission_allowed(submission: Submission, now: datetime) -> None:
    # An explicit instructor request overrides the assignment policy.
    if submission.status == SubmissionStatus.RESUBMISSION_REQUIRED:
        return
    if not submission.assignment.allow_resubmission:
        raise ResubmissionNotAllowed()

def _reset_for_resubmission(submission: Submission, now: datetime) -> None:
    submission.score = None
    submission.feedback = None
    submission.graded_at = None
    submission.graded_by = None
    submission.submitted_at = now
    submission.is_resubmission = True

_resubmit = dict(guard=_require_resubmission_allowed, effect=_reset_for_resubmission)

SUBMISSION_LIFECYCLE = StateMachine(
    "Submission",
    SubmissionStatus.values,
    [
        Transition(SubmissionStatus.SUBMITTED, SubmissionStatus.GRADED,
                   guard=_require_grade_fields, effect=_stamp_graded),
        Transition(SubmissionStatus.SUBMITTED, SubmissionStatus.RESUBMISSION_REQUIRED, effect=_clear_score),
        Transition(SubmissionStatus.GRADED, SubmissionStatus.RESUBMISSION_REQUIRED, effect=_clear_score),
        Transition(SubmissionStatus.SUBMITTED, SubmissionStatus.SUBMITTED, **_resubmit),
        Transition(SubmissionStatus.GRADED, SubmissionStatus.SUBMITTED, **_resubmit),
        Transition(SubmissionStatus.RESUBMISSION_REQUIRED, SubmissionStatus.SUBMITTED, **_resubmit),
    ],
)

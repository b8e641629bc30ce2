import logging

from django.db import transaction
from django.utils import timezone

from LearningManagementApp.core.access import is_submission_participant
from LearningManagementApp.core.choices import AssignmentStatus, GradeAction, SubmissionStatus
from LearningManagementApp.core.errors import (
    AssignmentClosed,
    DeadlinePassed,
    DomainValidationError,
    InsufficientPermissions,
    SubmissionNotFound,
)
from LearningManagementApp.core.validators import validate_submission_link
from LearningManagementApp.courses.models import Enrollment
from LearningManagementApp.domain.lifecycles import SUBMISSION_LIFECYCLE
from LearningManagementApp.domain.services.assignment_service import get_assignment, get_owned_assignment
from LearningManagementApp.learning.models import Submission

logger = logging.getLogger(__name__)


def _lock_active_enrollment(learner, assignment):
    # Locking the enrollment row serializes submits of one learner in one course.
    enrollment = (
        Enrollment.objects.select_for_update()
        .filter(learner=learner, course_id=assignment.course_id)
        .active()
        .first()
    )
    if enrollment is None:
        raise InsufficientPermissions("Active enrollment required to submit.")
    return enrollment


@transaction.atomic
def submit(learner, assignment_id, content, link=None):
    """Create or overwrite the learner's single submission for an assignment.

    Lateness is decided once, at submission time, and never recomputed.
    """
    assignment = get_assignment(assignment_id, for_update=True)
    if assignment.status != AssignmentStatus.PUBLISHED:
        raise AssignmentClosed()
    _lock_active_enrollment(learner, assignment)

    if not (content or "").strip():
        raise DomainValidationError("Submission content is required.", code="SUBMISSION_CONTENT_REQUIRED")
    link = validate_submission_link(link)

    now = timezone.now()
    is_late = now > assignment.due_date
    existing = Submission.objects.select_for_update().filter(assignment=assignment, learner=learner).first()

    if existing is not None:
        previous = existing.status
        SUBMISSION_LIFECYCLE.apply(existing, SubmissionStatus.SUBMITTED, now=now)
    if is_late and not assignment.allow_late:
        logger.info("Late submission refused: learner %s assignment %s", learner.id, assignment.pk)
        raise DeadlinePassed()

    if existing is None:
        submission = Submission.objects.create(
            assignment=assignment,
            learner=learner,
            content=content,
            link=link,
            status=SubmissionStatus.SUBMITTED,
            is_late=is_late,
            submitted_at=now,
        )
        logger.info("Submission %s created (late=%s)", submission.pk, is_late)
        return submission

    existing.content = content
    existing.link = link
    existing.is_late = is_late
    existing.save()
    logger.info("Submission %s resubmitted from %s (late=%s)", existing.pk, previous, is_late)
    return existing


def _get_submission_for_update(submission_id):
    try:
        return Submission.objects.select_for_update().get(pk=submission_id)
    except Submission.DoesNotExist:
        raise SubmissionNotFound()


@transaction.atomic
def grade(instructor, submission_id, score=None, feedback=None, action=GradeAction.GRADE, assignment_id=None):
    """Grade a submission or send it back for resubmission (course owner only)."""
    submission = _get_submission_for_update(submission_id)
    if assignment_id is not None and str(submission.assignment_id) != str(assignment_id):
        raise SubmissionNotFound()
    # Ownership and liveness of the assignment/course.
    get_owned_assignment(submission.assignment_id, instructor)
    previous = submission.status

    if action == GradeAction.RESUBMISSION_REQUIRED:
        if feedback is not None:
            submission.feedback = feedback
        SUBMISSION_LIFECYCLE.apply(submission, SubmissionStatus.RESUBMISSION_REQUIRED)
        submission.graded_by = instructor
    elif action == GradeAction.GRADE:
        if previous == SubmissionStatus.SUBMITTED:
            submission.score = score
            submission.feedback = feedback
        SUBMISSION_LIFECYCLE.apply(submission, SubmissionStatus.GRADED)
        submission.graded_by = instructor
    else:
        raise DomainValidationError(f"Unknown grading action {action!r}.", code="INVALID_GRADE_ACTION")

    submission.save()
    logger.info("Submission %s %s -> %s by instructor %s", submission.pk, previous, submission.status, instructor.id)
    return submission


def list_assignment_submissions(instructor, assignment_id, status=None):
    assignment = get_owned_assignment(assignment_id, instructor)
    qs = assignment.submissions.select_related("learner", "graded_by").order_by("-submitted_at", "-pk")
    if status:
        qs = qs.filter(status=status)
    return qs


def list_learner_submissions(learner, course_id=None):
    qs = (
        Submission.objects.for_learner(learner)
        .filter(assignment__deleted_at__isnull=True, assignment__course__deleted_at__isnull=True)
        .select_related("assignment", "assignment__course")
        .order_by("-submitted_at", "-pk")
    )
    if course_id is not None:
        qs = qs.filter(assignment__course_id=course_id)
    return qs


def get_submission(user, submission_id, assignment_id=None):
    """Visible to the submitting learner and to the course owner.

    Submissions of deleted assignments or courses are not found. With
    ``assignment_id`` the submission must also belong to that assignment.
    """
    qs = Submission.objects.select_related("assignment__course", "learner").filter(
        assignment__deleted_at__isnull=True, assignment__course__deleted_at__isnull=True
    )
    if assignment_id is not None:
        qs = qs.filter(assignment_id=assignment_id)
    try:
        submission = qs.get(pk=submission_id)
    except Submission.DoesNotExist:
        raise SubmissionNotFound()
    if is_submission_participant(user, submission):
        return submission
    raise InsufficientPermissions()

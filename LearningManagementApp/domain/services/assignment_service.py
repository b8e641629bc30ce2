"""Domain service functions for assignments and the per-course weight cap.

The weight rule: for one course, the ``points_weight`` of all live
assignments sums to at most 1.0. ``validate_weight`` is the check; callers
hold a lock on the course row while validating and writing so two
concurrent edits cannot both pass against the same stale total.
"""
import logging
from typing import Any

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from LearningManagementApp.core.access import is_active_learner, is_owner
from LearningManagementApp.core.choices import AssignmentStatus
from LearningManagementApp.core.config import lms_settings
from LearningManagementApp.core.errors import (
    AssignmentNotFound,
    DomainValidationError,
    InsufficientPermissions,
    NotOwner,
    WeightExceeded,
)
from LearningManagementApp.courses.models import Course, User
from LearningManagementApp.domain.lifecycles import ASSIGNMENT_LIFECYCLE
from LearningManagementApp.domain.services.course_service import get_course, get_owned_course
from LearningManagementApp.learning.models import Assignment

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "due_date", "points_weight", "allow_late", "allow_resubmission")


def validate_weight(course_id: int, candidate_weight: float, exclude_assignment_id: int | None = None) -> float:
    """Check that adding ``candidate_weight`` keeps the course total within 100%.

    Args:
        course_id: Course whose live assignments are summed.
        candidate_weight: Weight of the assignment being created or edited.
        exclude_assignment_id: Assignment being replaced by the candidate.

    Returns:
        The resulting total weight.

    Raises:
        WeightExceeded: If the total would exceed 1.0 (beyond float tolerance).
    """
    qs = Assignment.objects.for_course(course_id)
    if exclude_assignment_id is not None:
        qs = qs.exclude(pk=exclude_assignment_id)
    total = qs.total_weight() + (candidate_weight or 0.0)
    if total > 1.0 + lms_settings.weight_tolerance:
        logger.info("Weight cap hit for course %s: total would be %.4f", course_id, total)
        raise WeightExceeded()
    return total


def _check_weight_range(weight: Any) -> float:
    try:
        weight = float(weight)
    except (TypeError, ValueError):
        raise DomainValidationError("Points weight must be a number.", code="INVALID_WEIGHT")
    if not 0.0 <= weight <= 1.0:
        raise DomainValidationError("Points weight must be between 0 and 1.", code="INVALID_WEIGHT")
    return weight


def get_assignment(assignment_id: int, *, for_update: bool = False) -> Assignment:
    """Return a live assignment of a live course or raise AssignmentNotFound."""
    qs = Assignment.objects.select_for_update() if for_update else Assignment.objects.select_related("course")
    try:
        assignment = qs.get(pk=assignment_id, course__deleted_at__isnull=True)
    except Assignment.DoesNotExist:
        raise AssignmentNotFound()
    return assignment


def get_owned_assignment(assignment_id: int, instructor: User, *, for_update: bool = False) -> Assignment:
    assignment = get_assignment(assignment_id, for_update=for_update)
    if assignment.course.owner_id != instructor.id:
        raise NotOwner()
    return assignment


@transaction.atomic
def create_assignment(instructor: User, course_id: int, data: dict[str, Any]) -> Assignment:
    """Create a draft assignment in an owned course after validating its weight."""
    course = get_owned_course(course_id, instructor, for_update=True)
    payload = {key: data[key] for key in EDITABLE_FIELDS if key in data}
    if not (payload.get("title") or "").strip():
        raise DomainValidationError("Title is required.", code="ASSIGNMENT_TITLE_REQUIRED")
    if payload.get("due_date") is None:
        raise DomainValidationError("Due date is required.", code="ASSIGNMENT_DUE_DATE_REQUIRED")
    payload["points_weight"] = _check_weight_range(payload.get("points_weight", 0.0))
    validate_weight(course.pk, payload["points_weight"])
    assignment = Assignment.objects.create(course=course, status=AssignmentStatus.DRAFT, **payload)
    logger.info("Assignment %s created in course %s (weight %s)", assignment.pk, course.pk, assignment.points_weight)
    return assignment


@transaction.atomic
def update_assignment(instructor: User, assignment_id: int, data: dict[str, Any]) -> Assignment:
    """Update an owned assignment; a weight change is validated excluding the assignment itself."""
    assignment = get_owned_assignment(assignment_id, instructor)
    # Lock the parent course for the validate-then-write window.
    get_course(assignment.course_id, for_update=True)
    payload = {key: data[key] for key in EDITABLE_FIELDS if key in data}
    if "title" in payload and not (payload["title"] or "").strip():
        raise DomainValidationError("Title is required.", code="ASSIGNMENT_TITLE_REQUIRED")
    if "points_weight" in payload:
        payload["points_weight"] = _check_weight_range(payload["points_weight"])
        if payload["points_weight"] != assignment.points_weight:
            validate_weight(assignment.course_id, payload["points_weight"], exclude_assignment_id=assignment.pk)
    for field, value in payload.items():
        setattr(assignment, field, value)
    assignment.save()
    return assignment


@transaction.atomic
def change_assignment_status(instructor: User, assignment_id: int, new_status: str) -> Assignment:
    """Move an owned assignment through ``draft -> published -> closed``.

    Raises:
        AssignmentPastDeadline: Publishing with a due date that is not in the future.
        InvalidStateTransition: Transition outside the table.
    """
    assignment = get_owned_assignment(assignment_id, instructor, for_update=True)
    previous = assignment.status
    ASSIGNMENT_LIFECYCLE.apply(assignment, new_status)
    assignment.save()
    logger.info("Assignment %s status changed %s -> %s", assignment.pk, previous, assignment.status)
    return assignment


@transaction.atomic
def delete_assignment(instructor: User, assignment_id: int) -> Assignment:
    """Soft-delete an owned assignment; its weight no longer counts toward the cap."""
    assignment = get_owned_assignment(assignment_id, instructor, for_update=True)
    assignment.deleted_at = timezone.now()
    assignment.save(update_fields=["deleted_at", "updated_at"])
    logger.info("Assignment %s soft-deleted", assignment.pk)
    return assignment


def list_course_assignments(user: User, course_id: int) -> QuerySet[Assignment]:
    """Owner sees every live assignment; active learners see published ones only."""
    course: Course = get_course(course_id)
    qs = Assignment.objects.for_course(course).order_by("due_date", "pk")
    if is_owner(user, course):
        return qs
    if is_active_learner(user, course):
        return qs.published()
    raise InsufficientPermissions()


def get_assignment_for(user: User, assignment_id: int) -> Assignment:
    """Assignment detail as seen by ``user`` (owner, or active learner for published ones)."""
    assignment = get_assignment(assignment_id)
    if is_owner(user, assignment.course):
        return assignment
    if not is_active_learner(user, assignment.course) or assignment.status != AssignmentStatus.PUBLISHED:
        raise InsufficientPermissions()
    return assignment

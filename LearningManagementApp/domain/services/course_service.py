"""Domain service functions for the course lifecycle.

These helpers encapsulate business rules (only the owner may change a course,
titles are unique per instructor, publishing needs a description, deleting is
only possible without active enrollments) and keep view/serializer layers thin.
All mutating operations run inside atomic transactions so a refused operation
never leaves a partial write behind.
"""
import logging
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from LearningManagementApp.core.choices import CourseStatus, EnrollmentStatus
from LearningManagementApp.core.errors import (
    CourseNotFound,
    DomainValidationError,
    Duplicate,
    HasActiveEnrollments,
    NotOwner,
)
from LearningManagementApp.courses.models import Course, Enrollment, User
from LearningManagementApp.domain.lifecycles import COURSE_LIFECYCLE
from LearningManagementApp.taxonomy.models import Category, Difficulty

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "category_id", "difficulty_id", "enrollment_limit")


def get_course(course_id: int, *, for_update: bool = False) -> Course:
    """Return a live (not soft-deleted) course or raise CourseNotFound."""
    qs = Course.objects.select_related("owner", "category", "difficulty")
    if for_update:
        qs = Course.objects.select_for_update()
    try:
        return qs.get(pk=course_id)
    except Course.DoesNotExist:
        raise CourseNotFound()


def get_owned_course(course_id: int, instructor: User, *, for_update: bool = False) -> Course:
    """Return the course if ``instructor`` owns it.

    Raises:
        CourseNotFound: Missing or soft-deleted.
        NotOwner: Course belongs to someone else.
    """
    course = get_course(course_id, for_update=for_update)
    if course.owner_id != instructor.id:
        raise NotOwner()
    return course


def get_visible_course(course_id: int, user: User) -> Course:
    """Owner sees any live course; others see published ones or courses they are enrolled in.

    Hidden courses answer CourseNotFound so their existence does not leak.
    """
    course = get_course(course_id)
    if course.owner_id == user.id or course.status == CourseStatus.PUBLISHED:
        return course
    if Enrollment.objects.filter(course=course, learner=user).active().exists():
        return course
    raise CourseNotFound()


def _ensure_unique_title(owner: User, title: str, exclude_id: int | None = None) -> None:
    qs = Course.objects.filter(owner=owner, title=title)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        logger.info("Duplicate course title %r for instructor %s", title, owner.id)
        raise Duplicate("A course with this title already exists.", code="COURSE_TITLE_DUPLICATE")


def _ensure_active_taxonomy(data: dict[str, Any]) -> None:
    """Referenced category/difficulty must exist and be active."""
    for key, model in (("category_id", Category), ("difficulty_id", Difficulty)):
        ref = data.get(key)
        if ref is None:
            continue
        if not model.objects.filter(pk=ref, is_active=True).exists():
            raise DomainValidationError(
                f"{model._meta.verbose_name.capitalize()} {ref} is missing or inactive.",
                code="METADATA_INACTIVE",
            )


def _clean_payload(data: dict[str, Any]) -> dict[str, Any]:
    payload = {key: data[key] for key in EDITABLE_FIELDS if key in data}
    for key in ("category", "difficulty"):
        if key in data:
            value = data[key]
            payload[f"{key}_id"] = getattr(value, "pk", value)
    if "title" in payload:
        payload["title"] = (payload["title"] or "").strip()
        if not payload["title"]:
            raise DomainValidationError("Title is required.", code="COURSE_TITLE_REQUIRED")
    if "description" in payload and payload["description"] is None:
        payload["description"] = ""
    return payload


@transaction.atomic
def create_course(owner: User, data: dict[str, Any]) -> Course:
    """Create a course in ``draft`` status.

    Args:
        owner: Instructor creating (and owning) the course.
        data: Validated payload (title, description, category, difficulty, enrollment_limit).

    Returns:
        The newly created Course instance.
    """
    payload = _clean_payload(data)
    if "title" not in payload:
        raise DomainValidationError("Title is required.", code="COURSE_TITLE_REQUIRED")
    _ensure_unique_title(owner, payload["title"])
    _ensure_active_taxonomy(payload)
    try:
        with transaction.atomic():
            course = Course.objects.create(owner=owner, **payload)
    except IntegrityError:
        # Concurrent create with the same title won the race.
        raise Duplicate("A course with this title already exists.", code="COURSE_TITLE_DUPLICATE")
    logger.info("Course %s created by instructor %s", course.pk, owner.id)
    return course


@transaction.atomic
def update_course(course_id: int, instructor: User, data: dict[str, Any]) -> Course:
    """Update editable fields of an owned course, re-checking the title rule on rename."""
    course = get_owned_course(course_id, instructor, for_update=True)
    payload = _clean_payload(data)
    if "title" in payload and payload["title"] != course.title:
        _ensure_unique_title(instructor, payload["title"], exclude_id=course.pk)
    _ensure_active_taxonomy(payload)
    for field, value in payload.items():
        setattr(course, field, value)
    try:
        with transaction.atomic():
            course.save()
    except IntegrityError:
        raise Duplicate("A course with this title already exists.", code="COURSE_TITLE_DUPLICATE")
    return course


@transaction.atomic
def change_status(course_id: int, instructor: User, new_status: str) -> Course:
    """Move an owned course through its lifecycle.

    ``published -> archived`` closes every published assignment of the course in
    the same transaction.

    Raises:
        InvalidStateTransition: No-op or transition outside the table.
        DomainValidationError: Publishing without title/description.
    """
    course = get_owned_course(course_id, instructor, for_update=True)
    previous = course.status
    COURSE_LIFECYCLE.apply(course, new_status)
    course.save()
    logger.info("Course %s status changed %s -> %s", course.pk, previous, course.status)
    return course


@transaction.atomic
def delete_course(course_id: int, instructor: User) -> Course:
    """Soft-delete an owned course that has no active enrollments."""
    course = get_owned_course(course_id, instructor, for_update=True)
    if Enrollment.objects.filter(course=course).active().exists():
        logger.info("Course %s delete refused: active enrollments", course.pk)
        raise HasActiveEnrollments()
    course.deleted_at = timezone.now()
    course.save(update_fields=["deleted_at", "updated_at"])
    logger.info("Course %s soft-deleted", course.pk)
    return course


def list_instructor_courses(instructor: User, status: str | None = None) -> QuerySet[Course]:
    """Live courses owned by ``instructor`` annotated with their active enrollment count."""
    qs = Course.objects.for_owner(instructor).select_related("category", "difficulty")
    if status:
        qs = qs.filter(status=status)
    return qs.annotate(
        active_enrollments=Count("enrollments", filter=Q(enrollments__status=EnrollmentStatus.ACTIVE))
    )

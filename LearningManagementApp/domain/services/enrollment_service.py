"""Domain service functions for learner enrollment.

Enrolling is idempotent: enrolling twice yields one active row, a cancelled
row is reactivated in place, and a unique violation raised by a concurrent
insert counts as success. Capacity is checked while holding a lock on the
course row so the count-then-write window cannot be interleaved.
"""
import logging

from django.core.paginator import Paginator
from django.db import IntegrityError, transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from LearningManagementApp.core.choices import CourseSort, CourseStatus, EnrollmentStatus
from LearningManagementApp.core.config import lms_settings
from LearningManagementApp.core.errors import (
    CapacityExceeded,
    CourseArchived,
    CourseNotFound,
    CourseNotPublished,
    NotEnrolled,
)
from LearningManagementApp.courses.models import Course, Enrollment, User
from LearningManagementApp.domain.services.course_service import get_course

logger = logging.getLogger(__name__)


def _lock_course(course_id: int) -> Course:
    try:
        return Course.objects.select_for_update().get(pk=course_id)
    except Course.DoesNotExist:
        raise CourseNotFound()


def _ensure_capacity(course: Course) -> None:
    if course.enrollment_limit is None:
        return
    active = Enrollment.objects.filter(course=course).active().count()
    if active >= course.enrollment_limit:
        logger.info("Course %s is full (%s/%s)", course.pk, active, course.enrollment_limit)
        raise CapacityExceeded()


def _bump_enrollment_count(course: Course, delta: int) -> None:
    Course.all_objects.filter(pk=course.pk).update(enrollment_count=F("enrollment_count") + delta)


@transaction.atomic
def enroll(learner: User, course_id: int) -> Enrollment:
    """Enroll ``learner`` in a published course (idempotent).

    Raises:
        CourseNotFound: Missing or soft-deleted course.
        CourseArchived: Course is archived.
        CourseNotPublished: Course is still a draft.
        CapacityExceeded: Enrollment limit reached.
    """
    course = _lock_course(course_id)
    if course.status == CourseStatus.ARCHIVED:
        raise CourseArchived()
    if course.status != CourseStatus.PUBLISHED:
        raise CourseNotPublished()

    existing = Enrollment.objects.select_for_update().for_pair(learner, course).first()
    if existing is not None and existing.status == EnrollmentStatus.ACTIVE:
        logger.debug("Learner %s already enrolled in course %s", learner.id, course.pk)
        return existing

    _ensure_capacity(course)
    now = timezone.now()

    if existing is not None:
        existing.status = EnrollmentStatus.ACTIVE
        existing.enrolled_at = now
        existing.save(update_fields=["status", "enrolled_at", "updated_at"])
        _bump_enrollment_count(course, 1)
        logger.info("Enrollment %s reactivated", existing.pk)
        return existing

    try:
        with transaction.atomic():
            enrollment = Enrollment.objects.create(
                learner=learner, course=course, status=EnrollmentStatus.ACTIVE, enrolled_at=now
            )
    except IntegrityError:
        # A concurrent request inserted the same pair first; its row is the result.
        logger.info("Concurrent enrollment for learner %s course %s treated as success", learner.id, course.pk)
        return Enrollment.objects.for_pair(learner, course).get()
    _bump_enrollment_count(course, 1)
    logger.info("Learner %s enrolled in course %s", learner.id, course.pk)
    return enrollment


@transaction.atomic
def cancel(learner: User, course_id: int) -> Enrollment:
    """Cancel the learner's active enrollment in a course."""
    course = _lock_course(course_id)
    enrollment = (
        Enrollment.objects.select_for_update()
        .for_pair(learner, course)
        .active()
        .first()
    )
    if enrollment is None:
        raise NotEnrolled()
    enrollment.status = EnrollmentStatus.CANCELLED
    enrollment.save(update_fields=["status", "updated_at"])
    _bump_enrollment_count(course, -1)
    logger.info("Enrollment %s cancelled", enrollment.pk)
    return enrollment


def enrollment_status(learner: User, course_id: int) -> dict:
    course = get_course(course_id)
    enrollment = Enrollment.objects.for_pair(learner, course).first()
    return {
        "is_enrolled": bool(enrollment and enrollment.status == EnrollmentStatus.ACTIVE),
        "enrollment": enrollment,
    }


def available_courses(
    learner: User,
    search: str | None = None,
    category_id: int | None = None,
    difficulty_id: int | None = None,
    sort: str = CourseSort.NEWEST,
) -> QuerySet[Course]:
    """Published live courses with active (or no) taxonomy, annotated with ``is_enrolled``."""
    qs = (
        Course.objects.published()
        .with_active_taxonomy()
        .select_related("owner", "category", "difficulty")
        .annotate_enrolled(learner)
    )
    if search:
        qs = qs.search(search)
    if category_id:
        qs = qs.filter(category_id=category_id)
    if difficulty_id:
        qs = qs.filter(difficulty_id=difficulty_id)
    if sort == CourseSort.POPULAR:
        return qs.order_by("-enrollment_count", "-created_at")
    return qs.order_by("-created_at", "-pk")


def list_available(learner: User, page: int = 1, page_size: int | None = None, **filters) -> dict:
    """Page through the catalogue for ``learner``.

    Returns:
        dict with ``courses`` (list of Course, each with ``is_enrolled``),
        ``total``, ``page``, ``page_size`` and ``total_pages``.
    """
    page_size = min(page_size or lms_settings.default_page_size, lms_settings.max_page_size)
    paginator = Paginator(available_courses(learner, **filters), page_size)
    current = paginator.get_page(page)
    return {
        "courses": list(current.object_list),
        "total": paginator.count,
        "page": current.number,
        "page_size": page_size,
        "total_pages": paginator.num_pages,
    }


def list_enrolled(learner: User) -> QuerySet[Course]:
    """Courses the learner is actively enrolled in."""
    return (
        Course.objects.where_learner_enrolled(learner)
        .select_related("owner", "category", "difficulty")
        .order_by("title", "pk")
    )

import pytest
from model_bakery import baker

from LearningManagementApp.core.choices import AssignmentStatus, CourseStatus
from LearningManagementApp.core.errors import (
    CourseNotFound,
    DomainValidationError,
    Duplicate,
    HasActiveEnrollments,
    InvalidStateTransition,
    NotOwner,
)
from LearningManagementApp.courses.models import Course
from LearningManagementApp.domain.services import assignment_service, course_service, enrollment_service
from LearningManagementApp.learning.models import Assignment
from LearningManagementApp.tests.helpers import make_assignment, make_course

pytestmark = pytest.mark.django_db


def test_create_course_starts_as_draft(instructor):
    course = course_service.create_course(instructor, {"title": "  Intro  ", "description": "Basics"})
    assert course.status == CourseStatus.DRAFT
    assert course.title == "Intro"
    assert course.owner_id == instructor.id
    assert course.enrollment_count == 0


def test_create_course_requires_title(instructor):
    with pytest.raises(DomainValidationError) as exc:
        course_service.create_course(instructor, {"title": "   "})
    assert exc.value.code == "COURSE_TITLE_REQUIRED"


def test_duplicate_title_per_owner_rejected(instructor, other_instructor):
    course_service.create_course(instructor, {"title": "Intro"})
    with pytest.raises(Duplicate):
        course_service.create_course(instructor, {"title": "Intro"})
    # Another instructor may reuse the title.
    assert course_service.create_course(other_instructor, {"title": "Intro"}).pk


def test_title_free_again_after_soft_delete(instructor):
    course = course_service.create_course(instructor, {"title": "Intro"})
    course_service.delete_course(course.pk, instructor)
    assert course_service.create_course(instructor, {"title": "Intro"}).pk != course.pk


def test_create_course_rejects_inactive_category(instructor):
    category = baker.make("taxonomy.Category", name="Retired", is_active=False)
    with pytest.raises(DomainValidationError) as exc:
        course_service.create_course(instructor, {"title": "Intro", "category": category})
    assert exc.value.code == "METADATA_INACTIVE"


def test_update_course_owner_only(instructor, other_instructor):
    course = make_course(instructor, publish=False)
    with pytest.raises(NotOwner):
        course_service.update_course(course.pk, other_instructor, {"title": "Mine now"})
    updated = course_service.update_course(course.pk, instructor, {"description": "New text"})
    assert updated.description == "New text"


def test_rename_to_existing_title_rejected(instructor):
    make_course(instructor, title="One", publish=False)
    two = make_course(instructor, title="Two", publish=False)
    with pytest.raises(Duplicate):
        course_service.update_course(two.pk, instructor, {"title": "One"})


def test_publish_requires_description(instructor):
    course = make_course(instructor, description="", publish=False)
    with pytest.raises(DomainValidationError) as exc:
        course_service.change_status(course.pk, instructor, CourseStatus.PUBLISHED)
    assert exc.value.code == "COURSE_PUBLISH_VALIDATION_ERROR"
    course.refresh_from_db()
    assert course.status == CourseStatus.DRAFT

    course_service.update_course(course.pk, instructor, {"description": "Now described"})
    published = course_service.change_status(course.pk, instructor, CourseStatus.PUBLISHED)
    assert published.status == CourseStatus.PUBLISHED
    assert published.published_at is not None


def test_same_status_is_invalid_transition(instructor):
    course = make_course(instructor)
    with pytest.raises(InvalidStateTransition):
        course_service.change_status(course.pk, instructor, CourseStatus.PUBLISHED)


def test_draft_cannot_be_archived(instructor):
    course = make_course(instructor, publish=False)
    with pytest.raises(InvalidStateTransition):
        course_service.change_status(course.pk, instructor, CourseStatus.ARCHIVED)


def test_archive_closes_only_published_assignments(instructor):
    course = make_course(instructor)
    published = make_assignment(instructor, course, 0.3, title="Published")
    draft = make_assignment(instructor, course, 0.3, title="Draft", publish=False)
    closed = make_assignment(instructor, course, 0.3, title="Closed")
    closed = assignment_service.change_assignment_status(instructor, closed.pk, AssignmentStatus.CLOSED)
    closed_at_before = closed.closed_at

    archived = course_service.change_status(course.pk, instructor, CourseStatus.ARCHIVED)
    assert archived.status == CourseStatus.ARCHIVED
    assert archived.archived_at is not None

    published.refresh_from_db()
    draft.refresh_from_db()
    closed.refresh_from_db()
    assert published.status == AssignmentStatus.CLOSED
    assert published.closed_at == archived.archived_at
    assert published.history.first().status == AssignmentStatus.CLOSED
    assert draft.status == AssignmentStatus.DRAFT
    assert closed.closed_at == closed_at_before


def test_archived_course_can_return_to_draft(instructor):
    course = make_course(instructor)
    course_service.change_status(course.pk, instructor, CourseStatus.ARCHIVED)
    draft = course_service.change_status(course.pk, instructor, CourseStatus.DRAFT)
    assert draft.status == CourseStatus.DRAFT
    assert draft.archived_at is None


def test_delete_without_active_enrollments_soft_deletes(instructor, learner):
    course = make_course(instructor)
    enrollment_service.enroll(learner, course.pk)
    enrollment_service.cancel(learner, course.pk)

    course_service.delete_course(course.pk, instructor)
    assert not Course.objects.filter(pk=course.pk).exists()
    assert Course.all_objects.get(pk=course.pk).deleted_at is not None
    with pytest.raises(CourseNotFound):
        course_service.get_course(course.pk)


def test_delete_with_active_enrollment_fails(instructor, course, enrolled):
    with pytest.raises(HasActiveEnrollments):
        course_service.delete_course(course.pk, instructor)
    assert Course.objects.filter(pk=course.pk).exists()


def test_delete_does_not_touch_assignments(instructor):
    course = make_course(instructor)
    assignment = make_assignment(instructor, course, 0.5)
    course_service.delete_course(course.pk, instructor)
    assert Assignment.all_objects.get(pk=assignment.pk).deleted_at is None


def test_list_instructor_courses_counts_active_enrollments(instructor, course, learner, other_learner):
    enrollment_service.enroll(learner, course.pk)
    enrollment_service.enroll(other_learner, course.pk)
    enrollment_service.cancel(other_learner, course.pk)
    make_course(instructor, title="Draft one", publish=False)

    rows = {c.title: c for c in course_service.list_instructor_courses(instructor)}
    assert rows["Intro"].active_enrollments == 1
    assert rows["Draft one"].active_enrollments == 0
    assert [c.title for c in course_service.list_instructor_courses(instructor, status=CourseStatus.DRAFT)] == ["Draft one"]


def test_visible_course_hides_foreign_drafts(instructor, learner):
    draft = make_course(instructor, title="Hidden", publish=False)
    with pytest.raises(CourseNotFound):
        course_service.get_visible_course(draft.pk, learner)
    assert course_service.get_visible_course(draft.pk, instructor).pk == draft.pk

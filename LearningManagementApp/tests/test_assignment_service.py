import pytest

from LearningManagementApp.core.choices import AssignmentStatus
from LearningManagementApp.core.errors import (
    AssignmentPastDeadline,
    DomainValidationError,
    InsufficientPermissions,
    InvalidStateTransition,
    NotOwner,
    WeightExceeded,
)
from LearningManagementApp.domain.services import assignment_service, course_service
from LearningManagementApp.learning.models import Assignment
from LearningManagementApp.tests.helpers import in_days, make_assignment, make_course

pytestmark = pytest.mark.django_db


def total_weight(course):
    return Assignment.objects.filter(course=course).total_weight()


def test_intro_scenario(instructor):
    course = course_service.create_course(instructor, {"title": "Intro", "description": ""})
    with pytest.raises(DomainValidationError):
        course_service.change_status(course.pk, instructor, "published")
    course_service.update_course(course.pk, instructor, {"description": "Basics"})
    course_service.change_status(course.pk, instructor, "published")

    make_assignment(instructor, course, 0.5, title="A")
    with pytest.raises(WeightExceeded) as exc:
        make_assignment(instructor, course, 0.6, title="B")
    assert exc.value.code == "ASSIGNMENT_WEIGHT_EXCEEDED"
    assert Assignment.objects.filter(course=course).count() == 1

    make_assignment(instructor, course, 0.5, title="B")
    assert total_weight(course) == pytest.approx(1.0)


def test_weights_within_float_tolerance(instructor, course):
    for weight in (0.1, 0.2, 0.7):
        make_assignment(instructor, course, weight, publish=False)
    assert total_weight(course) <= 1.0 + 1e-9


def test_update_weight_excludes_itself(instructor, course):
    solo = make_assignment(instructor, course, 0.5)
    updated = assignment_service.update_assignment(instructor, solo.pk, {"points_weight": 1.0})
    assert updated.points_weight == 1.0


def test_update_weight_over_cap_rejected(instructor, course):
    first = make_assignment(instructor, course, 0.5, title="First")
    make_assignment(instructor, course, 0.5, title="Second")
    with pytest.raises(WeightExceeded):
        assignment_service.update_assignment(instructor, first.pk, {"points_weight": 0.6})
    first.refresh_from_db()
    assert first.points_weight == 0.5


def test_draft_assignments_count_toward_cap(instructor, course):
    make_assignment(instructor, course, 0.8, publish=False)
    with pytest.raises(WeightExceeded):
        make_assignment(instructor, course, 0.3)


def test_soft_deleted_assignment_frees_weight(instructor, course):
    big = make_assignment(instructor, course, 0.9)
    assignment_service.delete_assignment(instructor, big.pk)
    assert Assignment.all_objects.get(pk=big.pk).deleted_at is not None
    assert make_assignment(instructor, course, 0.9).pk != big.pk


def test_weight_must_be_in_range(instructor, course):
    with pytest.raises(DomainValidationError):
        make_assignment(instructor, course, 1.5)


def test_only_owner_creates(other_instructor, course):
    with pytest.raises(NotOwner):
        make_assignment(other_instructor, course, 0.1)


def test_publish_sets_published_at(instructor, course):
    assignment = make_assignment(instructor, course, 0.2, publish=False)
    assert assignment.status == AssignmentStatus.DRAFT
    published = assignment_service.change_assignment_status(instructor, assignment.pk, AssignmentStatus.PUBLISHED)
    assert published.published_at is not None


def test_publish_with_past_due_date_rejected(instructor, course):
    assignment = make_assignment(instructor, course, 0.2, publish=False, due_date=in_days(-1))
    with pytest.raises(AssignmentPastDeadline):
        assignment_service.change_assignment_status(instructor, assignment.pk, AssignmentStatus.PUBLISHED)
    assignment.refresh_from_db()
    assert assignment.status == AssignmentStatus.DRAFT


def test_closed_is_terminal(instructor, course):
    assignment = make_assignment(instructor, course, 0.2)
    closed = assignment_service.change_assignment_status(instructor, assignment.pk, AssignmentStatus.CLOSED)
    assert closed.closed_at is not None
    with pytest.raises(InvalidStateTransition):
        assignment_service.change_assignment_status(instructor, assignment.pk, AssignmentStatus.PUBLISHED)


def test_draft_can_be_closed_directly(instructor, course):
    assignment = make_assignment(instructor, course, 0.2, publish=False)
    closed = assignment_service.change_assignment_status(instructor, assignment.pk, AssignmentStatus.CLOSED)
    assert closed.status == AssignmentStatus.CLOSED


def test_list_course_assignments_by_role(instructor, learner, other_learner, course, enrolled):
    make_assignment(instructor, course, 0.2, title="Visible")
    make_assignment(instructor, course, 0.2, title="Hidden", publish=False)

    assert {a.title for a in assignment_service.list_course_assignments(instructor, course.pk)} == {"Visible", "Hidden"}
    assert [a.title for a in assignment_service.list_course_assignments(learner, course.pk)] == ["Visible"]
    with pytest.raises(InsufficientPermissions):
        assignment_service.list_course_assignments(other_learner, course.pk)


def test_learner_cannot_open_draft_assignment(instructor, learner, course, enrolled):
    draft = make_assignment(instructor, course, 0.2, publish=False)
    with pytest.raises(InsufficientPermissions):
        assignment_service.get_assignment_for(learner, draft.pk)


def test_validate_weight_returns_total(instructor):
    course = make_course(instructor, title="Weights")
    make_assignment(instructor, course, 0.25)
    assert assignment_service.validate_weight(course.pk, 0.5) == pytest.approx(0.75)

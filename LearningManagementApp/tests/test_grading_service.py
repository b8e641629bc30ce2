import pytest

from LearningManagementApp.core.choices import CourseStatus
from LearningManagementApp.domain.services import (
    assignment_service,
    course_service,
    enrollment_service,
    grading_service,
    submission_service,
)
from LearningManagementApp.tests.helpers import make_assignment, make_course

pytestmark = pytest.mark.django_db


@pytest.fixture
def two_assignments(instructor, course, enrolled):
    heavy = make_assignment(instructor, course, 0.6, title="Heavy")
    light = make_assignment(instructor, course, 0.4, title="Light")
    return heavy, light


def grade(instructor, learner, assignment, score):
    submission = submission_service.submit(learner, assignment.pk, f"answer for {assignment.title}")
    return submission_service.grade(instructor, submission.pk, score=score, feedback="graded")


def test_total_ignores_ungraded_weight(instructor, learner, course, two_assignments):
    heavy, _ = two_assignments
    grade(instructor, learner, heavy, 80)
    assert grading_service.compute_course_total(learner, course.pk) == {
        "total_score": 80.0,
        "assignments_count": 2,
        "graded_count": 1,
    }


def test_total_with_everything_graded(instructor, learner, course, two_assignments):
    heavy, light = two_assignments
    grade(instructor, learner, heavy, 80)
    grade(instructor, learner, light, 50)
    assert grading_service.compute_course_total(learner, course.pk)["total_score"] == 68.0


def test_total_is_none_before_grading(instructor, learner, course, two_assignments):
    heavy, _ = two_assignments
    submission_service.submit(learner, heavy.pk, "pending")
    result = grading_service.compute_course_total(learner, course.pk)
    assert result["total_score"] is None
    assert result["graded_count"] == 0


def test_total_rounds_to_one_decimal(instructor, learner, course, enrolled):
    a = make_assignment(instructor, course, 0.3, title="A")
    b = make_assignment(instructor, course, 0.3, title="B")
    c = make_assignment(instructor, course, 0.3, title="C")
    grade(instructor, learner, a, 100)
    grade(instructor, learner, b, 100)
    grade(instructor, learner, c, 0)
    assert grading_service.compute_course_total(learner, course.pk)["total_score"] == 66.7


def test_total_rounds_halves_up(instructor, learner, course, enrolled):
    a = make_assignment(instructor, course, 0.5, title="A")
    b = make_assignment(instructor, course, 0.5, title="B")
    grade(instructor, learner, a, 80)
    grade(instructor, learner, b, 80.5)
    # 80.25 goes up, not to the even 80.2.
    assert grading_service.compute_course_total(learner, course.pk)["total_score"] == 80.3


def test_round_half_up():
    assert grading_service.round_half_up(80.25) == 80.3
    assert grading_service.round_half_up(66.66666) == 66.7
    assert grading_service.round_half_up(12.0) == 12.0


def test_closed_and_deleted_assignments_drop_out(instructor, learner, course, two_assignments):
    heavy, light = two_assignments
    grade(instructor, learner, heavy, 80)
    grade(instructor, learner, light, 50)
    assignment_service.delete_assignment(instructor, light.pk)
    assert grading_service.compute_course_total(learner, course.pk)["total_score"] == 80.0

    course_service.change_status(course.pk, instructor, CourseStatus.ARCHIVED)
    result = grading_service.compute_course_total(learner, course.pk)
    assert result["total_score"] is None
    assert result["assignments_count"] == 0


def test_learner_grades_rows(instructor, learner, course, two_assignments):
    heavy, light = two_assignments
    grade(instructor, learner, heavy, 90)
    submission_service.submit(learner, light.pk, "not graded yet")
    other = make_course(instructor, title="Other")
    enrollment_service.enroll(learner, other.pk)

    grades = grading_service.learner_grades(learner)
    totals = {row["course_title"]: row["total_score"] for row in grades["courses"]}
    assert totals == {"Intro": 90.0, "Other": None}

    rows = {row["assignment_title"]: row for row in grades["assignments"]}
    assert rows["Heavy"]["score"] == 90
    assert rows["Heavy"]["points_weight"] == 0.6
    assert rows["Heavy"]["course_title"] == "Intro"
    assert rows["Light"]["score"] is None
    assert rows["Light"]["status"] == "submitted"

    only_other = grading_service.learner_grades(learner, course_id=other.pk)
    assert [row["course_title"] for row in only_other["courses"]] == ["Other"]
    assert only_other["assignments"] == []


def test_cancelled_enrollment_drops_course_from_grades(instructor, learner, course, two_assignments):
    heavy, _ = two_assignments
    grade(instructor, learner, heavy, 90)
    enrollment_service.cancel(learner, course.pk)
    assert grading_service.learner_grades(learner) == {"courses": [], "assignments": []}

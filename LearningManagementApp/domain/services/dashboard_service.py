"""Read-only aggregates for the instructor and learner home screens."""
from datetime import timedelta

from django.db.models import Avg, Count, Q
from django.utils import timezone

from LearningManagementApp.core.choices import AssignmentStatus, CourseStatus, SubmissionStatus
from LearningManagementApp.core.config import lms_settings
from LearningManagementApp.domain.services.assignment_service import get_owned_assignment
from LearningManagementApp.domain.services.course_service import list_instructor_courses
from LearningManagementApp.domain.services.grading_service import compute_course_total, round_half_up
from LearningManagementApp.courses.models import Course
from LearningManagementApp.learning.models import Assignment, Submission


def instructor_dashboard(instructor):
    courses = list_instructor_courses(instructor).order_by("title", "pk")
    owned_submissions = Submission.objects.for_instructor(instructor)
    pending = owned_submissions.filter(assignment__status=AssignmentStatus.PUBLISHED).ungraded().count()
    recent = owned_submissions.select_related("learner", "assignment", "assignment__course").order_by(
        "-submitted_at", "-pk"
    )[: lms_settings.recent_submissions_limit]
    return {
        "courses": [
            {
                "course_id": c.pk,
                "title": c.title,
                "status": c.status,
                "active_enrollments": c.active_enrollments,
            }
            for c in courses
        ],
        "pending_grading_count": pending,
        "recent_submissions": [
            {
                "submission_id": s.pk,
                "learner_id": s.learner_id,
                "learner_email": s.learner.email,
                "assignment_id": s.assignment_id,
                "assignment_title": s.assignment.title,
                "course_title": s.assignment.course.title,
                "status": s.status,
                "is_late": s.is_late,
                "submitted_at": s.submitted_at,
            }
            for s in recent
        ],
    }


def learner_dashboard(learner):
    """Progress per active course, assignments due soon, and latest graded feedback."""
    now = timezone.now()
    courses = list(
        Course.objects.where_learner_enrolled(learner)
        .exclude(status=CourseStatus.DRAFT)
        .order_by("title", "pk")
    )
    published = Assignment.objects.published().filter(course__in=courses)
    mine = {
        s.assignment_id: s
        for s in Submission.objects.for_learner(learner).filter(assignment__in=published)
    }

    progress = []
    for course in courses:
        course_assignments = [a for a in published if a.course_id == course.pk]
        graded = sum(
            1 for a in course_assignments
            if a.pk in mine and mine[a.pk].status == SubmissionStatus.GRADED
        )
        total = len(course_assignments)
        progress.append({
            "course_id": course.pk,
            "title": course.title,
            "status": course.status,
            "progress_percent": round_half_up(graded / total * 100) if total else 0.0,
            "total_score": compute_course_total(learner, course.pk)["total_score"],
        })

    window_end = now + timedelta(days=lms_settings.upcoming_window_days)
    upcoming = [
        {
            "assignment_id": a.pk,
            "title": a.title,
            "course_id": a.course_id,
            "due_date": a.due_date,
            "submission_status": mine[a.pk].status if a.pk in mine else None,
        }
        for a in published.filter(due_date__gte=now, due_date__lte=window_end).order_by("due_date", "pk")
    ]

    feedback = (
        Submission.objects.for_learner(learner)
        .graded()
        .filter(assignment__deleted_at__isnull=True, assignment__course__deleted_at__isnull=True)
        .select_related("assignment", "assignment__course")
        .order_by("-graded_at", "-pk")[: lms_settings.recent_feedback_limit]
    )
    return {
        "courses": progress,
        "upcoming_assignments": upcoming,
        "recent_feedback": [
            {
                "submission_id": s.pk,
                "assignment_title": s.assignment.title,
                "course_title": s.assignment.course.title,
                "score": s.score,
                "feedback": s.feedback,
                "graded_at": s.graded_at,
            }
            for s in feedback
        ],
    }


def submission_stats(instructor, assignment_id):
    assignment = get_owned_assignment(assignment_id, instructor)
    stats = assignment.submissions.aggregate(
        total=Count("pk"),
        graded=Count("pk", filter=Q(status=SubmissionStatus.GRADED)),
        late=Count("pk", filter=Q(is_late=True)),
        resubmission_required=Count("pk", filter=Q(status=SubmissionStatus.RESUBMISSION_REQUIRED)),
        average_score=Avg("score", filter=Q(status=SubmissionStatus.GRADED)),
    )
    if stats["average_score"] is not None:
        stats["average_score"] = round_half_up(stats["average_score"])
    stats["assignment_id"] = assignment.pk
    return stats

from django.db import models
from django.db.models import QuerySet, Q, Exists, OuterRef, Sum
from django.db.models.functions import Coalesce

from LearningManagementApp.core.choices import (
    AssignmentStatus,
    CourseStatus,
    EnrollmentStatus,
    SubmissionStatus,
)


class SoftDeleteManager(models.Manager):
    """Default manager hiding rows whose ``deleted_at`` is set."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class CourseQuerySet(QuerySet):
    def published(self):
        return self.filter(status=CourseStatus.PUBLISHED)

    def for_owner(self, user):
        return self.filter(owner=user)

    def with_active_taxonomy(self):
        """Courses whose category and difficulty are either unset or active."""
        return self.filter(
            Q(category__isnull=True) | Q(category__is_active=True),
            Q(difficulty__isnull=True) | Q(difficulty__is_active=True),
        )

    def where_learner_enrolled(self, user):
        return self.filter(
            enrollments__learner=user,
            enrollments__status=EnrollmentStatus.ACTIVE,
        ).distinct()

    def annotate_enrolled(self, user):
        from LearningManagementApp.courses.models import Enrollment
        return self.annotate(
            is_enrolled=Exists(
                Enrollment.objects.filter(
                    course=OuterRef("pk"),
                    learner=user,
                    status=EnrollmentStatus.ACTIVE,
                )
            )
        )

    def search(self, term: str):
        return self.filter(Q(title__icontains=term) | Q(description__icontains=term))


class EnrollmentQuerySet(QuerySet):
    def active(self):
        return self.filter(status=EnrollmentStatus.ACTIVE)

    def for_pair(self, learner, course):
        return self.filter(learner=learner, course=course)


class AssignmentQuerySet(QuerySet):
    def published(self):
        return self.filter(status=AssignmentStatus.PUBLISHED)

    def for_course(self, course):
        return self.filter(course=course)

    def total_weight(self) -> float:
        return self.aggregate(total=Coalesce(Sum("points_weight"), 0.0))["total"]


class SubmissionQuerySet(QuerySet):
    def for_instructor(self, user):
        return self.filter(
            assignment__course__owner=user,
            assignment__deleted_at__isnull=True,
            assignment__course__deleted_at__isnull=True,
        )

    def for_learner(self, user):
        return self.filter(learner=user)

    def graded(self):
        return self.filter(status=SubmissionStatus.GRADED)

    def ungraded(self):
        return self.exclude(status=SubmissionStatus.GRADED)

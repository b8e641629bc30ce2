"""Course domain models: Course, Enrollment."""

from django.db import models
from django.db.models import Q
from django.conf import settings

from simple_history.models import HistoricalRecords

from LearningManagementApp.core.choices import CourseStatus, EnrollmentStatus
from LearningManagementApp.courses.querysets import CourseQuerySet, EnrollmentQuerySet, SoftDeleteManager
from LearningManagementApp.taxonomy.models import Category, Difficulty


User = settings.AUTH_USER_MODEL

class Course(models.Model):
    """A course owned by an instructor that moves through draft/published/archived.

    Fields:
        title: Human readable course title (unique per owner among live courses).
        description: Required before publishing.
        category / difficulty: Optional taxonomy references.
        status: CourseStatus value.
        enrollment_count: Denormalized number of active enrollments.
        enrollment_limit: Optional capacity; null means unlimited.
        published_at / archived_at: Set by status transitions.
        deleted_at: Soft-delete marker; deleted courses are hidden by ``objects``.
        history: Audit history (django-simple-history).
    """
    owner = models.ForeignKey(User, on_delete=models.PROTECT, related_name="owned_courses")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.ForeignKey(Category, null=True, blank=True, on_delete=models.PROTECT, related_name="courses")
    difficulty = models.ForeignKey(Difficulty, null=True, blank=True, on_delete=models.PROTECT, related_name="courses")
    status = models.CharField(max_length=16, choices=CourseStatus.choices, default=CourseStatus.DRAFT)
    enrollment_count = models.PositiveIntegerField(default=0)
    enrollment_limit = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    published_at = models.DateTimeField(null=True, blank=True)
    archived_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    history = HistoricalRecords()

    objects = SoftDeleteManager.from_queryset(CourseQuerySet)()
    all_objects = CourseQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "title"],
                condition=Q(deleted_at__isnull=True),
                name="uq_live_course_title_per_owner",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.title} (#{self.pk})"


class Enrollment(models.Model):
    """A learner's enrollment in a course.

    One row per (learner, course): cancelling flips ``status`` and enrolling
    again reactivates the same row.
    """
    learner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="enrollments")
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="enrollments")
    status = models.CharField(max_length=16, choices=EnrollmentStatus.choices, default=EnrollmentStatus.ACTIVE)
    enrolled_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = EnrollmentQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["learner", "course"], name="uq_enrollment_learner_course"),
        ]

    def __str__(self) -> str:
        return f"{self.learner} -> {self.course} ({self.status})"

"""Learning domain models: Assignment, Submission."""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator

from LearningManagementApp.courses.models import Course
from LearningManagementApp.core.choices import AssignmentStatus, SubmissionStatus
from LearningManagementApp.courses.querysets import AssignmentQuerySet, SubmissionQuerySet, SoftDeleteManager

from simple_history.models import HistoricalRecords

User = settings.AUTH_USER_MODEL

class Assignment(models.Model):
    """Graded work inside a course; ``points_weight`` is its share (0–1) of the course grade."""
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="assignments")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    due_date = models.DateTimeField()
    points_weight = models.FloatField(validators=[MinValueValidator(0.0), MaxValueValidator(1.0)])
    status = models.CharField(max_length=16, choices=AssignmentStatus.choices, default=AssignmentStatus.DRAFT)
    allow_late = models.BooleanField(default=False)
    allow_resubmission = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    published_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    history = HistoricalRecords()

    objects = SoftDeleteManager.from_queryset(AssignmentQuerySet)()
    all_objects = AssignmentQuerySet.as_manager()

    class Meta:
        ordering = ["due_date", "pk"]

    def __str__(self) -> str:
        return f"{self.title} (#{self.pk})"


class Submission(models.Model):
    """A learner's work for an assignment (unique per assignment+learner, updated in place on resubmission)."""
    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name="submissions")
    learner = models.ForeignKey(User, on_delete=models.CASCADE, related_name="submissions")
    content = models.TextField()
    link = models.URLField(blank=True, null=True)
    status = models.CharField(max_length=32, choices=SubmissionStatus.choices, default=SubmissionStatus.SUBMITTED)
    is_late = models.BooleanField(default=False)
    is_resubmission = models.BooleanField(default=False)
    score = models.FloatField(
        null=True, blank=True,
        validators=[MinValueValidator(0.0), MaxValueValidator(100.0)],
    )
    feedback = models.TextField(blank=True, null=True)
    graded_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name="graded_submissions"
    )
    submitted_at = models.DateTimeField()
    graded_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = SubmissionQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["assignment", "learner"], name="uq_submission_assignment_learner"),
        ]

    def __str__(self) -> str:
        return f"Submission #{self.pk} by {self.learner_id} for {self.assignment_id} ({self.status})"

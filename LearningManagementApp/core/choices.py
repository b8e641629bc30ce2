"""Typed enumerations (TextChoices) for user roles and entity lifecycle states."""
from django.db import models

class UserRole(models.TextChoices):
    """System-level role assigned to a user account."""
    INSTRUCTOR = "INSTRUCTOR", "Instructor"
    LEARNER = "LEARNER", "Learner"
    OPERATOR = "OPERATOR", "Operator"

class CourseStatus(models.TextChoices):
    """Lifecycle states for a course."""
    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"
    ARCHIVED = "archived", "Archived"

class AssignmentStatus(models.TextChoices):
    """Lifecycle states for an assignment."""
    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"
    CLOSED = "closed", "Closed"

class EnrollmentStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    CANCELLED = "cancelled", "Cancelled"

class SubmissionStatus(models.TextChoices):
    """Lifecycle states for a learner's submission (absence of a row means not submitted)."""
    SUBMITTED = "submitted", "Submitted"
    GRADED = "graded", "Graded"
    RESUBMISSION_REQUIRED = "resubmission_required", "Resubmission required"

class GradeAction(models.TextChoices):
    """What an instructor does with a submission when reviewing it."""
    GRADE = "grade", "Grade"
    RESUBMISSION_REQUIRED = "resubmission_required", "Request resubmission"

class MetadataKind(models.TextChoices):
    CATEGORY = "categories", "Category"
    DIFFICULTY = "difficulties", "Difficulty"

class CourseSort(models.TextChoices):
    NEWEST = "newest", "Newest"
    POPULAR = "popular", "Popular"

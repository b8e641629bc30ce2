"""Domain errors raised by the service layer.

Every error carries a stable ``code`` (what callers branch on) and the HTTP
status the API layer answers with. Services raise them inside
``transaction.atomic`` blocks, so a raised error always means nothing was
written.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class DomainError(APIException):
    """Base class for expected business-rule violations."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request violates a business rule."
    default_code = "DOMAIN_ERROR"

    def __init__(self, detail: str | None = None, code: str | None = None) -> None:
        super().__init__(detail=detail, code=code or self.default_code)
        self.code = code or self.default_code


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "NOT_FOUND"


class CourseNotFound(NotFound):
    default_detail = "Course not found."
    default_code = "COURSE_NOT_FOUND"


class AssignmentNotFound(NotFound):
    default_detail = "Assignment not found."
    default_code = "ASSIGNMENT_NOT_FOUND"


class SubmissionNotFound(NotFound):
    default_detail = "Submission not found."
    default_code = "SUBMISSION_NOT_FOUND"


class MetadataNotFound(NotFound):
    default_detail = "Category or difficulty not found."
    default_code = "METADATA_NOT_FOUND"


class NotEnrolled(NotFound):
    default_detail = "No active enrollment for this course."
    default_code = "NOT_ENROLLED"


class NotOwner(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Only the course owner may do this."
    default_code = "NOT_OWNER"


class InsufficientPermissions(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Insufficient permissions."
    default_code = "INSUFFICIENT_PERMISSIONS"


class InvalidStateTransition(DomainError):
    default_detail = "Invalid status transition."
    default_code = "INVALID_STATE_TRANSITION"


class DomainValidationError(DomainError):
    default_detail = "Invalid input."
    default_code = "VALIDATION_ERROR"


class WeightExceeded(DomainError):
    default_detail = "Total assignment weights in course cannot exceed 100%."
    default_code = "ASSIGNMENT_WEIGHT_EXCEEDED"


class AssignmentPastDeadline(DomainError):
    default_detail = "Published assignment deadline must be in the future."
    default_code = "ASSIGNMENT_PAST_DEADLINE"


class AssignmentClosed(DomainError):
    default_detail = "Assignment is not open for submissions."
    default_code = "ASSIGNMENT_CLOSED"


class DeadlinePassed(DomainError):
    default_detail = "Deadline has passed and late submissions are not allowed."
    default_code = "DEADLINE_PASSED"


class ResubmissionNotAllowed(InvalidStateTransition):
    default_detail = "Resubmission is not allowed for this assignment."
    default_code = "RESUBMISSION_NOT_ALLOWED"


class CapacityExceeded(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Course enrollment limit reached."
    default_code = "CAPACITY_EXCEEDED"


class Duplicate(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Duplicate entry."
    default_code = "DUPLICATE"


class HasActiveEnrollments(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Course has active enrollments; archive it instead."
    default_code = "HAS_ACTIVE_ENROLLMENTS"


class CourseNotPublished(DomainError):
    default_detail = "Course is not published."
    default_code = "COURSE_NOT_PUBLISHED"


class CourseArchived(DomainError):
    default_detail = "Course is archived and no longer accepts enrollments."
    default_code = "COURSE_ARCHIVED"


class MetadataInUse(DomainError):
    default_detail = "Category or difficulty is in use and cannot be deactivated."
    default_code = "METADATA_IN_USE"

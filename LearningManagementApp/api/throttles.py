"""API throttling classes.

Counters live in the configured Django cache (``default`` unless overridden
via the ``cache`` attribute), so tests can swap the backend or clear it.
"""

from rest_framework.throttling import UserRateThrottle


class SubmissionRateThrottle(UserRateThrottle):
    """Throttle limiting submission create requests per user."""
    scope = "submission_create"


class EnrollmentRateThrottle(UserRateThrottle):
    """Throttle limiting enroll requests per user."""
    scope = "enrollment_create"

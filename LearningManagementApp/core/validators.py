"""Validation helpers for submission links and metadata names."""

from urllib.parse import urlparse

from django.conf import settings

from LearningManagementApp.core.errors import DomainValidationError


def validate_submission_link(url: str | None) -> str | None:
    """Ensure an optional link uses https and, when configured, an allowed domain suffix."""
    if not url:
        return None
    result = urlparse(url)
    if result.scheme != "https" or not result.netloc:
        raise DomainValidationError("Link must be an https URL.", code="INVALID_LINK")
    allowed = getattr(settings, "ALLOWED_SUBMISSION_DOMAINS", [])
    if allowed and not any(result.netloc.endswith(d) for d in allowed):
        raise DomainValidationError("Link domain not allowed.", code="INVALID_LINK")
    return url


def validate_metadata_name(name: str | None, max_length: int = 100) -> str:
    """Strip and bound-check a category or difficulty name."""
    name = (name or "").strip()
    if not name:
        raise DomainValidationError("Name is required.", code="METADATA_NAME_REQUIRED")
    if len(name) > max_length:
        raise DomainValidationError(f"Name exceeds {max_length} characters.", code="METADATA_NAME_TOO_LONG")
    return name

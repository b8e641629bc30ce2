"""REST framework exception handler adding a stable ``code`` to error bodies."""
import logging

from rest_framework.views import exception_handler

from LearningManagementApp.core.errors import DomainError

logger = logging.getLogger(__name__)


def domain_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.error("Unhandled error in %s", type(view).__name__ if view else "unknown view", exc_info=exc)
        return None
    if isinstance(exc, DomainError):
        response.data = {"code": exc.code, "detail": str(exc.detail)}
    elif isinstance(response.data, dict) and "code" not in response.data:
        codes = exc.get_codes() if hasattr(exc, "get_codes") else None
        response.data["code"] = codes if isinstance(codes, str) else "VALIDATION_ERROR"
    return response

from rest_framework.permissions import BasePermission


class IsInstructor(BasePermission):
    message = "Instructor role required."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_instructor)


class IsLearner(BasePermission):
    """Any authenticated non-instructor account may act as a learner."""
    message = "Learner role required."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and not request.user.is_instructor)


class IsOperator(BasePermission):
    message = "Operator role required."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_operator)


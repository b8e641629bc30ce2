from django.urls import path, include
from rest_framework_nested import routers
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from LearningManagementApp.api.views import (
    CourseViewSet,
    AssignmentViewSet,
    SubmissionViewSet,
    MetadataViewSet,
    RegistrationView,
    MeView,
    MySubmissionsView,
    MyGradesView,
    InstructorDashboardView,
    LearnerDashboardView,
)

router = routers.SimpleRouter()
router.register(r"courses", CourseViewSet, basename="course")
router.register(r"metadata", MetadataViewSet, basename="metadata")

courses_router = routers.NestedSimpleRouter(router, r"courses", lookup="course")
courses_router.register(r"assignments", AssignmentViewSet, basename="course-assignments")

assignments_router = routers.NestedSimpleRouter(courses_router, r"assignments", lookup="assignment")
assignments_router.register(r"submissions", SubmissionViewSet, basename="assignment-submissions")

urlpatterns = [
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="docs"),
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/register/", RegistrationView.as_view(), name="auth-register"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("auth/me/", MeView.as_view(), name="auth-me"),
    path("submissions/mine/", MySubmissionsView.as_view(), name="my-submissions"),
    path("grades/mine/", MyGradesView.as_view(), name="my-grades"),
    path("dashboards/instructor/", InstructorDashboardView.as_view(), name="dashboard-instructor"),
    path("dashboards/learner/", LearnerDashboardView.as_view(), name="dashboard-learner"),
    path("", include(router.urls)),
    path("", include(courses_router.urls)),
    path("", include(assignments_router.urls)),
]

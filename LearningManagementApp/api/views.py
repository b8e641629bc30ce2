from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiResponse,
    OpenApiParameter,
)

from LearningManagementApp.core.choices import MetadataKind
from LearningManagementApp.core.access import is_owner
from LearningManagementApp.core.errors import AssignmentNotFound
from LearningManagementApp.core.permissions import IsInstructor, IsLearner, IsOperator
from LearningManagementApp.domain.services import (
    assignment_service,
    course_service,
    dashboard_service,
    enrollment_service,
    grading_service,
    submission_service,
    taxonomy_service,
)
from LearningManagementApp.api.mixins import PaginationMixin
from LearningManagementApp.api.serializers import (
    RegistrationSerializer,
    UserSerializer,
    CategorySerializer,
    DifficultySerializer,
    MetadataWriteSerializer,
    MetadataListSerializer,
    CourseWriteSerializer,
    CourseReadSerializer,
    CourseStatusSerializer,
    CourseCatalogueQuerySerializer,
    EnrollmentSerializer,
    AssignmentWriteSerializer,
    AssignmentReadSerializer,
    AssignmentStatusSerializer,
    SubmissionWriteSerializer,
    SubmissionReadSerializer,
    GradeWriteSerializer,
    SubmissionStatsSerializer,
    LearnerGradesSerializer,
)
from LearningManagementApp.api.throttles import EnrollmentRateThrottle, SubmissionRateThrottle

DOMAIN_ERRORS = {
    400: OpenApiResponse(description="Business rule violated ({code, detail})"),
    403: OpenApiResponse(description="Forbidden"),
    404: OpenApiResponse(description="Not found"),
}


# ---------- Auth ----------
@extend_schema(
    tags=["Auth"],
    request=RegistrationSerializer,
    responses={201: UserSerializer, 400: OpenApiResponse(description="Validation error")},
    description="Register a new user. Operator role requires staff privileges.",
)
class RegistrationView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        ser = RegistrationSerializer(data=request.data, context={"request": request})
        ser.is_valid(raise_exception=True)
        user = ser.save()
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Auth"], responses={200: UserSerializer})
class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


# ---------- Courses ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Courses"],
        description="Courses owned by the calling instructor.",
        parameters=[OpenApiParameter("status", str, OpenApiParameter.QUERY, required=False)],
    ),
    retrieve=extend_schema(tags=["Courses"], responses={200: CourseReadSerializer, **DOMAIN_ERRORS}),
    create=extend_schema(tags=["Courses"], request=CourseWriteSerializer, responses={201: CourseReadSerializer, **DOMAIN_ERRORS}),
    partial_update=extend_schema(tags=["Courses"], request=CourseWriteSerializer, responses={200: CourseReadSerializer, **DOMAIN_ERRORS}),
    destroy=extend_schema(
        tags=["Courses"],
        responses={204: OpenApiResponse(description="Soft-deleted"), 409: OpenApiResponse(description="Has active enrollments")},
    ),
    change_status=extend_schema(tags=["Courses"], request=CourseStatusSerializer, responses={200: CourseReadSerializer, **DOMAIN_ERRORS}),
    catalogue=extend_schema(
        tags=["Catalogue"],
        parameters=[
            CourseCatalogueQuerySerializer,
            OpenApiParameter("page", int, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("page_size", int, OpenApiParameter.QUERY, required=False),
        ],
    ),
    enrolled=extend_schema(tags=["Enrollment"], responses={200: CourseReadSerializer(many=True)}),
    enroll=extend_schema(
        tags=["Enrollment"],
        request=None,
        responses={200: EnrollmentSerializer, 409: OpenApiResponse(description="Capacity exceeded"), 429: OpenApiResponse(description="Throttled")},
    ),
    cancel_enrollment=extend_schema(tags=["Enrollment"], request=None, responses={200: EnrollmentSerializer, 404: OpenApiResponse(description="Not enrolled")}),
    enrollment=extend_schema(tags=["Enrollment"]),
)
class CourseViewSet(PaginationMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = CourseReadSerializer
    throttle_classes: list[type] = []

    def get_permissions(self):
        if self.action in ("list", "create", "partial_update", "destroy", "change_status"):
            return [IsAuthenticated(), IsInstructor()]
        if self.action in ("catalogue", "enrolled", "enroll", "cancel_enrollment", "enrollment"):
            return [IsAuthenticated(), IsLearner()]
        return super().get_permissions()

    def get_throttles(self):
        if self.action == "enroll":
            self.throttle_classes = [EnrollmentRateThrottle]
        return super().get_throttles()

    def list(self, request):
        qs = course_service.list_instructor_courses(request.user, status=request.query_params.get("status"))
        return self.paginate_and_respond(qs, CourseReadSerializer)

    def retrieve(self, request, pk=None):
        course = course_service.get_visible_course(pk, request.user)
        return Response(CourseReadSerializer(course).data)

    def create(self, request):
        ser = CourseWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        course = course_service.create_course(request.user, ser.validated_data)
        return Response(CourseReadSerializer(course).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        ser = CourseWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        course = course_service.update_course(pk, request.user, ser.validated_data)
        return Response(CourseReadSerializer(course).data)

    def destroy(self, request, pk=None):
        course_service.delete_course(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="status")
    def change_status(self, request, pk=None):
        ser = CourseStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        course = course_service.change_status(pk, request.user, ser.validated_data["status"])
        return Response(CourseReadSerializer(course).data)

    @action(detail=False, methods=["get"])
    def catalogue(self, request):
        query = CourseCatalogueQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = enrollment_service.list_available(
            request.user,
            page=request.query_params.get("page", 1),
            page_size=_int_or_none(request.query_params.get("page_size")),
            **query.validated_data,
        )
        result["courses"] = CourseReadSerializer(result["courses"], many=True).data
        return Response(result)

    @action(detail=False, methods=["get"])
    def enrolled(self, request):
        return self.paginate_and_respond(enrollment_service.list_enrolled(request.user), CourseReadSerializer)

    @action(detail=True, methods=["post"])
    def enroll(self, request, pk=None):
        enrollment = enrollment_service.enroll(request.user, pk)
        return Response(EnrollmentSerializer(enrollment).data)

    @action(detail=True, methods=["post"], url_path="cancel-enrollment")
    def cancel_enrollment(self, request, pk=None):
        enrollment = enrollment_service.cancel(request.user, pk)
        return Response(EnrollmentSerializer(enrollment).data)

    @action(detail=True, methods=["get"])
    def enrollment(self, request, pk=None):
        result = enrollment_service.enrollment_status(request.user, pk)
        enrollment = result["enrollment"]
        return Response({
            "is_enrolled": result["is_enrolled"],
            "enrollment": EnrollmentSerializer(enrollment).data if enrollment else None,
        })


def _int_or_none(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _assignment_in_course(assignment_pk, course_pk):
    # Nested URLs only reach assignments of the course they name.
    assignment = assignment_service.get_assignment(assignment_pk)
    if assignment.course_id != _int_or_none(course_pk):
        raise AssignmentNotFound()
    return assignment


# ---------- Assignments ----------
@extend_schema_view(
    list=extend_schema(tags=["Assignments"], responses={200: AssignmentReadSerializer(many=True)}),
    retrieve=extend_schema(tags=["Assignments"], responses={200: AssignmentReadSerializer, **DOMAIN_ERRORS}),
    create=extend_schema(
        tags=["Assignments"],
        request=AssignmentWriteSerializer,
        responses={201: AssignmentReadSerializer, 400: OpenApiResponse(description="Weight exceeded / validation")},
    ),
    partial_update=extend_schema(tags=["Assignments"], request=AssignmentWriteSerializer, responses={200: AssignmentReadSerializer, **DOMAIN_ERRORS}),
    destroy=extend_schema(tags=["Assignments"], responses={204: OpenApiResponse(description="Soft-deleted")}),
    change_status=extend_schema(tags=["Assignments"], request=AssignmentStatusSerializer, responses={200: AssignmentReadSerializer, **DOMAIN_ERRORS}),
    stats=extend_schema(tags=["Assignments"], responses={200: SubmissionStatsSerializer}),
)
class AssignmentViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action in ("create", "partial_update", "destroy", "change_status", "stats"):
            return [IsAuthenticated(), IsInstructor()]
        return super().get_permissions()

    def list(self, request, course_pk=None):
        qs = assignment_service.list_course_assignments(request.user, course_pk)
        return Response(AssignmentReadSerializer(qs, many=True).data)

    def retrieve(self, request, pk=None, course_pk=None):
        _assignment_in_course(pk, course_pk)
        assignment = assignment_service.get_assignment_for(request.user, pk)
        return Response(AssignmentReadSerializer(assignment).data)

    def create(self, request, course_pk=None):
        ser = AssignmentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        assignment = assignment_service.create_assignment(request.user, course_pk, ser.validated_data)
        return Response(AssignmentReadSerializer(assignment).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None, course_pk=None):
        _assignment_in_course(pk, course_pk)
        ser = AssignmentWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        assignment = assignment_service.update_assignment(request.user, pk, ser.validated_data)
        return Response(AssignmentReadSerializer(assignment).data)

    def destroy(self, request, pk=None, course_pk=None):
        _assignment_in_course(pk, course_pk)
        assignment_service.delete_assignment(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="status")
    def change_status(self, request, pk=None, course_pk=None):
        _assignment_in_course(pk, course_pk)
        ser = AssignmentStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        assignment = assignment_service.change_assignment_status(request.user, pk, ser.validated_data["status"])
        return Response(AssignmentReadSerializer(assignment).data)

    @action(detail=True, methods=["get"])
    def stats(self, request, pk=None, course_pk=None):
        _assignment_in_course(pk, course_pk)
        return Response(dashboard_service.submission_stats(request.user, pk))


# ---------- Submissions ----------
@extend_schema_view(
    list=extend_schema(
        tags=["Submissions"],
        description="Course owner sees every submission; a learner sees only their own.",
        responses={200: SubmissionReadSerializer(many=True)},
    ),
    retrieve=extend_schema(tags=["Submissions"], responses={200: SubmissionReadSerializer, **DOMAIN_ERRORS}),
    create=extend_schema(
        tags=["Submissions"],
        description="Submit or resubmit (rate limited per user).",
        request=SubmissionWriteSerializer,
        responses={
            201: SubmissionReadSerializer,
            **DOMAIN_ERRORS,
            429: OpenApiResponse(description="Too many requests / throttled."),
        },
    ),
    grade=extend_schema(
        tags=["Grades"],
        request=GradeWriteSerializer,
        responses={200: SubmissionReadSerializer, **DOMAIN_ERRORS},
    ),
    mine=extend_schema(tags=["Submissions"], responses={200: SubmissionReadSerializer(many=True)}),
)
class SubmissionViewSet(PaginationMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]
    throttle_classes: list[type] = []
    serializer_class = SubmissionReadSerializer

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticated(), IsLearner()]
        if self.action == "grade":
            return [IsAuthenticated(), IsInstructor()]
        return super().get_permissions()

    def get_throttles(self):
        """Apply rate throttle only on create."""
        if self.action == "create":
            self.throttle_classes = [SubmissionRateThrottle]
        return super().get_throttles()

    def list(self, request, course_pk=None, assignment_pk=None):
        assignment = _assignment_in_course(assignment_pk, course_pk)
        if is_owner(request.user, assignment.course):
            qs = submission_service.list_assignment_submissions(
                request.user, assignment_pk, status=request.query_params.get("status")
            )
        else:
            qs = submission_service.list_learner_submissions(request.user).filter(assignment_id=assignment_pk)
        return self.paginate_and_respond(qs, SubmissionReadSerializer)

    def retrieve(self, request, pk=None, course_pk=None, assignment_pk=None):
        _assignment_in_course(assignment_pk, course_pk)
        submission = submission_service.get_submission(request.user, pk, assignment_id=assignment_pk)
        return Response(SubmissionReadSerializer(submission).data)

    def create(self, request, course_pk=None, assignment_pk=None):
        _assignment_in_course(assignment_pk, course_pk)
        ser = SubmissionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        submission = submission_service.submit(
            request.user,
            assignment_pk,
            content=ser.validated_data["content"],
            link=ser.validated_data.get("link") or None,
        )
        return Response(SubmissionReadSerializer(submission).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def grade(self, request, pk=None, course_pk=None, assignment_pk=None):
        _assignment_in_course(assignment_pk, course_pk)
        ser = GradeWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        submission = submission_service.grade(
            request.user,
            pk,
            score=ser.validated_data.get("score"),
            feedback=ser.validated_data.get("feedback"),
            action=ser.validated_data["action"],
            assignment_id=assignment_pk,
        )
        return Response(SubmissionReadSerializer(submission).data)


@extend_schema(
    tags=["Submissions"],
    parameters=[OpenApiParameter("course", int, OpenApiParameter.QUERY, required=False)],
    responses={200: SubmissionReadSerializer(many=True)},
)
class MySubmissionsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = submission_service.list_learner_submissions(
            request.user, course_id=_int_or_none(request.query_params.get("course"))
        )
        return Response(SubmissionReadSerializer(qs, many=True).data)


# ---------- Grades ----------
@extend_schema(
    tags=["Grades"],
    parameters=[OpenApiParameter("course", int, OpenApiParameter.QUERY, required=False)],
    responses={200: LearnerGradesSerializer},
)
class MyGradesView(APIView):
    permission_classes = [IsAuthenticated, IsLearner]

    def get(self, request):
        grades = grading_service.learner_grades(
            request.user, course_id=_int_or_none(request.query_params.get("course"))
        )
        return Response(LearnerGradesSerializer(grades).data)


# ---------- Dashboards ----------
@extend_schema(tags=["Dashboards"])
class InstructorDashboardView(APIView):
    permission_classes = [IsAuthenticated, IsInstructor]

    def get(self, request):
        return Response(dashboard_service.instructor_dashboard(request.user))


@extend_schema(tags=["Dashboards"])
class LearnerDashboardView(APIView):
    permission_classes = [IsAuthenticated, IsLearner]

    def get(self, request):
        return Response(dashboard_service.learner_dashboard(request.user))


# ---------- Metadata ----------
@extend_schema_view(
    list=extend_schema(tags=["Metadata"], responses={200: MetadataListSerializer}),
    list_all=extend_schema(tags=["Metadata"], responses={200: MetadataListSerializer}),
    create_category=extend_schema(tags=["Metadata"], request=MetadataWriteSerializer, responses={201: CategorySerializer}),
    create_difficulty=extend_schema(tags=["Metadata"], request=MetadataWriteSerializer, responses={201: DifficultySerializer}),
    update_entry=extend_schema(
        tags=["Metadata"],
        request=MetadataWriteSerializer,
        parameters=[
            OpenApiParameter("kind", str, OpenApiParameter.PATH, enum=MetadataKind.values),
            OpenApiParameter("entry_id", int, OpenApiParameter.PATH),
        ],
    ),
    deactivate=extend_schema(
        tags=["Metadata"],
        request=None,
        parameters=[
            OpenApiParameter("kind", str, OpenApiParameter.PATH, enum=MetadataKind.values),
            OpenApiParameter("entry_id", int, OpenApiParameter.PATH),
        ],
        responses={200: OpenApiResponse(description="Deactivated"), 400: OpenApiResponse(description="In use")},
    ),
)
class MetadataViewSet(viewsets.ViewSet):
    """Active categories/difficulties for everyone; management for operators."""
    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action == "list":
            return [IsAuthenticated()]
        return [IsAuthenticated(), IsOperator()]

    def list(self, request):
        return Response(MetadataListSerializer(taxonomy_service.list_active_metadata()).data)

    @action(detail=False, methods=["get"], url_path="all")
    def list_all(self, request):
        return Response(MetadataListSerializer(taxonomy_service.list_all_metadata(request.user)).data)

    @action(detail=False, methods=["post"], url_path="categories")
    def create_category(self, request):
        ser = MetadataWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        category = taxonomy_service.create_category(
            request.user, ser.validated_data.get("name"), description=ser.validated_data.get("description")
        )
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="difficulties")
    def create_difficulty(self, request):
        ser = MetadataWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        difficulty = taxonomy_service.create_difficulty(
            request.user,
            ser.validated_data.get("name"),
            description=ser.validated_data.get("description"),
            sort_order=ser.validated_data.get("sort_order", 0),
        )
        return Response(DifficultySerializer(difficulty).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["patch"], url_path=r"(?P<kind>categories|difficulties)/(?P<entry_id>\d+)")
    def update_entry(self, request, kind=None, entry_id=None):
        ser = MetadataWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        obj = taxonomy_service.update_metadata(request.user, kind, int(entry_id), **ser.validated_data)
        return Response(METADATA_SERIALIZERS[kind](obj).data)

    @action(detail=False, methods=["post"], url_path=r"(?P<kind>categories|difficulties)/(?P<entry_id>\d+)/deactivate")
    def deactivate(self, request, kind=None, entry_id=None):
        obj = taxonomy_service.deactivate_metadata(request.user, kind, int(entry_id))
        return Response(METADATA_SERIALIZERS[kind](obj).data)


METADATA_SERIALIZERS = {MetadataKind.CATEGORY: CategorySerializer, MetadataKind.DIFFICULTY: DifficultySerializer}

from rest_framework import serializers
from django.contrib.auth import get_user_model

from LearningManagementApp.core.choices import (
    AssignmentStatus,
    CourseSort,
    CourseStatus,
    GradeAction,
    UserRole,
)
from LearningManagementApp.core.validators import validate_submission_link
from LearningManagementApp.core.errors import DomainValidationError
from LearningManagementApp.courses.models import Course, Enrollment
from LearningManagementApp.learning.models import Assignment, Submission
from LearningManagementApp.taxonomy.models import Category, Difficulty

User = get_user_model()


class RegistrationSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8, help_text="User password (write-only).")

    class Meta:
        model = User
        fields = ["id", "email", "password", "first_name", "last_name", "role"]

    def validate_role(self, value):
        request = self.context.get("request")
        is_staff = bool(request and request.user and request.user.is_staff)
        if value == UserRole.OPERATOR and not is_staff:
            raise serializers.ValidationError("Operator registration requires staff privileges.")
        return value

    def create(self, validated):
        user = User(
            email=validated["email"],
            first_name=validated.get("first_name", ""),
            last_name=validated.get("last_name", ""),
            role=validated.get("role", UserRole.LEARNER),
            username=validated["email"],
        )
        user.set_password(validated["password"])
        user.save()
        return user


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "role"]


# ---------- Taxonomy ----------
class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "description", "is_active", "created_at", "updated_at"]
        read_only_fields = ["is_active", "created_at", "updated_at"]


class DifficultySerializer(serializers.ModelSerializer):
    class Meta:
        model = Difficulty
        fields = ["id", "name", "description", "sort_order", "is_active", "created_at", "updated_at"]
        read_only_fields = ["is_active", "created_at", "updated_at"]


class MetadataWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    sort_order = serializers.IntegerField(required=False, min_value=0)
    is_active = serializers.BooleanField(required=False)


class MetadataListSerializer(serializers.Serializer):
    categories = CategorySerializer(many=True)
    difficulties = DifficultySerializer(many=True)


# ---------- Courses ----------
class CourseWriteSerializer(serializers.ModelSerializer):
    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), required=False, allow_null=True
    )
    difficulty = serializers.PrimaryKeyRelatedField(
        queryset=Difficulty.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Course
        fields = ["title", "description", "category", "difficulty", "enrollment_limit"]
        extra_kwargs = {
            "title": {"help_text": "Unique among the instructor's live courses."},
            "description": {"required": False, "allow_blank": True, "help_text": "Required before publishing."},
            "enrollment_limit": {"help_text": "Maximum active enrollments; empty means unlimited."},
        }
        # Title uniqueness is enforced by the service layer and the partial DB constraint.
        validators = []


class CourseReadSerializer(serializers.ModelSerializer):
    owner = UserSerializer()
    category = CategorySerializer(allow_null=True)
    difficulty = DifficultySerializer(allow_null=True)
    is_enrolled = serializers.SerializerMethodField()
    active_enrollments = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = [
            "id", "title", "description", "status", "owner", "category", "difficulty",
            "enrollment_count", "enrollment_limit", "is_enrolled", "active_enrollments",
            "published_at", "archived_at", "created_at", "updated_at",
        ]

    def get_is_enrolled(self, obj) -> bool | None:
        return getattr(obj, "is_enrolled", None)

    def get_active_enrollments(self, obj) -> int | None:
        return getattr(obj, "active_enrollments", None)


class CourseStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CourseStatus.choices)


class CourseCatalogueQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True)
    category = serializers.IntegerField(required=False, source="category_id")
    difficulty = serializers.IntegerField(required=False, source="difficulty_id")
    sort = serializers.ChoiceField(choices=CourseSort.choices, required=False, default=CourseSort.NEWEST)


class EnrollmentSerializer(serializers.ModelSerializer):
    course = serializers.PrimaryKeyRelatedField(read_only=True)
    learner = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Enrollment
        fields = ["id", "course", "learner", "status", "enrolled_at", "updated_at"]


# ---------- Assignments ----------
class AssignmentWriteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Assignment
        fields = ["title", "description", "due_date", "points_weight", "allow_late", "allow_resubmission"]
        extra_kwargs = {
            "description": {"required": False, "allow_blank": True},
            "points_weight": {"help_text": "Share of the course grade, 0-1; all assignments of a course sum to at most 1."},
        }


class AssignmentReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = Assignment
        fields = [
            "id", "course", "title", "description", "due_date", "points_weight", "status",
            "allow_late", "allow_resubmission", "published_at", "closed_at", "created_at", "updated_at",
        ]


class AssignmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AssignmentStatus.choices)


# ---------- Submissions ----------
class SubmissionWriteSerializer(serializers.Serializer):
    content = serializers.CharField(help_text="Textual answer.")
    link = serializers.URLField(
        required=False, allow_null=True, allow_blank=True,
        help_text="Optional HTTPS link to external work (e.g., a repository).",
    )

    def validate_link(self, url):
        try:
            return validate_submission_link(url)
        except DomainValidationError as exc:
            raise serializers.ValidationError(str(exc.detail))


class SubmissionReadSerializer(serializers.ModelSerializer):
    learner = UserSerializer(read_only=True)

    class Meta:
        model = Submission
        fields = [
            "id", "assignment", "learner", "content", "link", "status", "is_late", "is_resubmission",
            "score", "feedback", "graded_by", "submitted_at", "graded_at", "updated_at",
        ]


class GradeWriteSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=GradeAction.choices, default=GradeAction.GRADE)
    score = serializers.FloatField(required=False, allow_null=True, help_text="0-100; required when grading.")
    feedback = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class SubmissionStatsSerializer(serializers.Serializer):
    assignment_id = serializers.IntegerField()
    total = serializers.IntegerField()
    graded = serializers.IntegerField()
    late = serializers.IntegerField()
    resubmission_required = serializers.IntegerField()
    average_score = serializers.FloatField(allow_null=True)


# ---------- Grades ----------
class CourseTotalSerializer(serializers.Serializer):
    course_id = serializers.IntegerField()
    course_title = serializers.CharField()
    total_score = serializers.FloatField(allow_null=True)
    assignments_count = serializers.IntegerField()
    graded_count = serializers.IntegerField()


class AssignmentGradeSerializer(serializers.Serializer):
    submission_id = serializers.IntegerField()
    assignment_id = serializers.IntegerField()
    assignment_title = serializers.CharField()
    assignment_description = serializers.CharField(allow_blank=True)
    course_id = serializers.IntegerField()
    course_title = serializers.CharField()
    score = serializers.FloatField(allow_null=True)
    feedback = serializers.CharField(allow_null=True)
    graded_at = serializers.DateTimeField(allow_null=True)
    is_late = serializers.BooleanField()
    is_resubmission = serializers.BooleanField()
    status = serializers.CharField()
    points_weight = serializers.FloatField()


class LearnerGradesSerializer(serializers.Serializer):
    courses = CourseTotalSerializer(many=True)
    assignments = AssignmentGradeSerializer(many=True)

import pytest
from django.core.cache import cache

from LearningManagementApp.core.choices import UserRole
from LearningManagementApp.domain.services import enrollment_service
from LearningManagementApp.tests.helpers import make_course, make_user


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def instructor():
    return make_user(UserRole.INSTRUCTOR, email="instructor@example.com")


@pytest.fixture
def other_instructor():
    return make_user(UserRole.INSTRUCTOR, email="other.instructor@example.com")


@pytest.fixture
def learner():
    return make_user(UserRole.LEARNER, email="learner@example.com")


@pytest.fixture
def other_learner():
    return make_user(UserRole.LEARNER, email="other.learner@example.com")


@pytest.fixture
def operator():
    return make_user(UserRole.OPERATOR, email="operator@example.com")


@pytest.fixture
def course(instructor):
    return make_course(instructor)


@pytest.fixture
def enrolled(learner, course):
    return enrollment_service.enroll(learner, course.pk)

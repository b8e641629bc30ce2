from django.contrib.auth.models import AbstractUser
from django.db import models

from LearningManagementApp.core.choices import UserRole

class User(AbstractUser):
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=UserRole.choices, default=UserRole.LEARNER)
    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    @property
    def is_instructor(self) -> bool:
        return self.role == UserRole.INSTRUCTOR

    @property
    def is_operator(self) -> bool:
        return self.role == UserRole.OPERATOR or self.is_staff

"""Learning app configuration."""

from django.apps import AppConfig

class LearningConfig(AppConfig):
    """AppConfig for the learning domain (assignments and submissions)."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "LearningManagementApp.learning"
    label = "learning"

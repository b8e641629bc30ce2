from django.apps import AppConfig

class TaxonomyConfig(AppConfig):
    """AppConfig for the shared course taxonomy (categories and difficulties)."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "LearningManagementApp.taxonomy"
    label = "taxonomy"

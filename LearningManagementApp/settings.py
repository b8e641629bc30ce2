"""Django settings for the learning management service.

Every deploy-specific value comes from the environment; the defaults give a
local SQLite setup suitable for development and the test suite.
"""
import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.getenv("LMS_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = _env_bool("LMS_DEBUG")
ALLOWED_HOSTS = [h for h in os.getenv("LMS_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "simple_history",
    "LearningManagementApp.users",
    "LearningManagementApp.taxonomy",
    "LearningManagementApp.courses",
    "LearningManagementApp.learning",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "simple_history.middleware.HistoryRequestMiddleware",
]

ROOT_URLCONF = "LearningManagementApp.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": os.getenv("LMS_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.getenv("LMS_DB_NAME", str(BASE_DIR / "lms.sqlite3")),
        "HOST": os.getenv("LMS_DB_HOST", ""),
        "PORT": os.getenv("LMS_DB_PORT", ""),
        "USER": os.getenv("LMS_DB_USER", ""),
        "PASSWORD": os.getenv("LMS_DB_PASSWORD", ""),
    }
}

CACHES = {
    "default": {
        "BACKEND": os.getenv("LMS_CACHE_BACKEND", "django.core.cache.backends.locmem.LocMemCache"),
        "LOCATION": os.getenv("LMS_CACHE_LOCATION", "lms-default"),
    }
}

AUTH_USER_MODEL = "users.User"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
STATIC_URL = "static/"

ALLOWED_SUBMISSION_DOMAINS = [d for d in os.getenv("LMS_ALLOWED_SUBMISSION_DOMAINS", "").split(",") if d]

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": int(os.getenv("LMS_DEFAULT_PAGE_SIZE", "10")),
    "EXCEPTION_HANDLER": "LearningManagementApp.api.exceptions.domain_exception_handler",
    "DEFAULT_THROTTLE_RATES": {
        "submission_create": os.getenv("LMS_SUBMISSION_RATE", "30/hour"),
        "enrollment_create": os.getenv("LMS_ENROLLMENT_RATE", "60/hour"),
    },
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=int(os.getenv("LMS_ACCESS_TOKEN_MINUTES", "30"))),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=int(os.getenv("LMS_REFRESH_TOKEN_DAYS", "1"))),
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Learning Management API",
    "DESCRIPTION": "Courses, enrollment, assignments, submissions and weighted grading.",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

LOG_LEVEL = os.getenv("LMS_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LMS_LOG_FILE")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "simple": {
            "format": "%(levelname)s - %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "formatter": "detailed",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "LearningManagementApp": {
            "level": "DEBUG",
            "handlers": ["console"],
            "propagate": True,
        },
        "django": {
            "level": os.getenv("LMS_DJANGO_LOG_LEVEL", "WARNING"),
            "handlers": ["console"],
        },
    },
}

if LOG_FILE:
    LOGGING["handlers"]["file"] = {
        "class": "logging.FileHandler",
        "level": "DEBUG",
        "formatter": "detailed",
        "filename": LOG_FILE,
        "mode": "a",
    }
    LOGGING["loggers"]["LearningManagementApp"]["handlers"].append("file")

"""Operator-side management of categories and difficulties."""
import logging

from django.db import IntegrityError, transaction

from LearningManagementApp.core.choices import MetadataKind
from LearningManagementApp.core.errors import (
    DomainValidationError,
    Duplicate,
    InsufficientPermissions,
    MetadataInUse,
    MetadataNotFound,
)
from LearningManagementApp.core.validators import validate_metadata_name
from LearningManagementApp.courses.models import Course
from LearningManagementApp.taxonomy.models import Category, Difficulty

logger = logging.getLogger(__name__)

MODELS = {MetadataKind.CATEGORY: Category, MetadataKind.DIFFICULTY: Difficulty}
COURSE_FIELD = {MetadataKind.CATEGORY: "category", MetadataKind.DIFFICULTY: "difficulty"}


def _model_for(kind):
    try:
        return MODELS[kind]
    except KeyError:
        raise DomainValidationError(f"Unknown metadata kind {kind!r}.", code="INVALID_METADATA_KIND")


def _ensure_operator(user):
    if not getattr(user, "is_operator", False):
        raise InsufficientPermissions("Operator role required.")


def _ensure_unique_name(model, name, exclude_id=None):
    qs = model.objects.filter(name__iexact=name)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise Duplicate(f"{model._meta.verbose_name.capitalize()} {name!r} already exists.", code="METADATA_DUPLICATE")


def _get(model, pk):
    try:
        return model.objects.select_for_update().get(pk=pk)
    except model.DoesNotExist:
        raise MetadataNotFound()


def list_active_metadata():
    return {
        "categories": list(Category.objects.filter(is_active=True).order_by("name")),
        "difficulties": list(Difficulty.objects.filter(is_active=True).order_by("sort_order", "name")),
    }


def list_all_metadata(operator):
    _ensure_operator(operator)
    return {
        "categories": list(Category.objects.order_by("name")),
        "difficulties": list(Difficulty.objects.order_by("sort_order", "name")),
    }


@transaction.atomic
def _create(operator, model, name, **fields):
    _ensure_operator(operator)
    name = validate_metadata_name(name)
    _ensure_unique_name(model, name)
    try:
        with transaction.atomic():
            obj = model.objects.create(name=name, **fields)
    except IntegrityError:
        raise Duplicate(code="METADATA_DUPLICATE")
    logger.info("%s %s created by operator %s", model.__name__, obj.pk, operator.id)
    return obj


def create_category(operator, name, description=None):
    return _create(operator, Category, name, description=description)


def create_difficulty(operator, name, description=None, sort_order=0):
    return _create(operator, Difficulty, name, description=description, sort_order=sort_order or 0)


@transaction.atomic
def update_metadata(operator, kind, pk, **changes):
    """Rename or re-describe an entry; ``sort_order`` only applies to difficulties."""
    _ensure_operator(operator)
    model = _model_for(kind)
    obj = _get(model, pk)
    if "name" in changes:
        name = validate_metadata_name(changes["name"])
        _ensure_unique_name(model, name, exclude_id=obj.pk)
        obj.name = name
    if "description" in changes:
        obj.description = changes["description"]
    if "sort_order" in changes and model is Difficulty:
        obj.sort_order = changes["sort_order"] or 0
    if "is_active" in changes and changes["is_active"]:
        obj.is_active = True
    obj.save()
    return obj


@transaction.atomic
def deactivate_metadata(operator, kind, pk):
    """Deactivate an entry not referenced by any live course; already inactive is a no-op."""
    _ensure_operator(operator)
    model = _model_for(kind)
    obj = _get(model, pk)
    if not obj.is_active:
        return obj
    if Course.objects.filter(**{COURSE_FIELD[kind]: obj}).exists():
        logger.info("%s %s deactivation refused: in use", model.__name__, obj.pk)
        raise MetadataInUse()
    obj.is_active = False
    obj.save(update_fields=["is_active", "updated_at"])
    logger.info("%s %s deactivated", model.__name__, obj.pk)
    return obj

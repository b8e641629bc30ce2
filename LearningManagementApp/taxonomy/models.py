"""Shared course taxonomy: categories and difficulties referenced by courses."""

from django.db import models


class Category(models.Model):
    """A subject area a course can be filed under; inactive ones are hidden from catalogues."""
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:
        return self.name


class Difficulty(models.Model):
    """A difficulty level; ``sort_order`` drives display order."""
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    sort_order = models.PositiveSmallIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sort_order", "name"]
        verbose_name_plural = "difficulties"

    def __str__(self) -> str:
        return self.name

"""Sequences app configuration."""

from django.apps import AppConfig


class SequencesConfig(AppConfig):
    """Django app config for per-type document numbering."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'sequences'

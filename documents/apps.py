"""Documents app configuration."""

from django.apps import AppConfig


class DocumentsConfig(AppConfig):
    """Django app config for issued documents and their lifecycle."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'documents'

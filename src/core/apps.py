"""App configuration for shared project utilities."""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Settings, URL routing, middleware, error handling and audited model bases."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Core"

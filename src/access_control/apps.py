"""App configuration for the dynamic permission engine."""

from django.apps import AppConfig


class AccessControlConfig(AppConfig):
    """Action catalog, permission grants, evaluation and the authorization gate."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "access_control"

    def ready(self) -> None:
        # Import system checks so they are registered with Django.
        from . import checks  # noqa: F401

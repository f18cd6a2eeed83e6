"""App configuration for the identity components."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Holds the custom User and Role models, JWT issuance and identity lookups."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"

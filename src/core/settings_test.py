"""Settings used by the test suite: in-memory SQLite, no startup discovery."""

from .settings import *  # noqa: F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PERMISSION_DISCOVERY_ON_STARTUP = False
ALLOW_SUPERUSER_BYPASS = False

LOGGING["root"]["level"] = "WARNING"  # noqa: F405
for _logger in LOGGING["loggers"].values():  # noqa: F405
    _logger["level"] = "WARNING"

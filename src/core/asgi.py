"""ASGI entry point; schedules permission discovery once the app is loaded."""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")

application = get_asgi_application()

from access_control.startup import start_discovery_in_background  # noqa: E402

start_discovery_in_background()

"""WSGI entry point; schedules permission discovery once the app is loaded."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")

application = get_wsgi_application()

from access_control.startup import start_discovery_in_background  # noqa: E402

start_discovery_in_background()

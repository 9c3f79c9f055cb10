"""WSGI entry point for the kvmanager project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "kvmanager.settings")

application = get_wsgi_application()

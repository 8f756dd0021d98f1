"""WSGI config for the Doorlist project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "doorlist.settings")

application = get_wsgi_application()

"""
WSGI entry point for HTTP-only deployments.

Chat sockets need the ASGI application in asgi.py; under WSGI only the
REST API is served.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()

"""
WSGI config for the Orbit Institute backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'orbit.config.settings')

application = get_wsgi_application()

"""
WSGI config for collab_project project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'collab_project.settings')

application = get_wsgi_application()

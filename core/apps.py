from django.apps import AppConfig
from django.conf import settings


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'

    def ready(self):
        from .log_setup import setup_logging
        setup_logging(getattr(settings, 'LOG_LEVEL', 'INFO'))

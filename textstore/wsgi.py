"""
WSGI entry point for textstore.

Starts the persistence gateway once the application is loaded and stops it
when the process exits. A missing database connection string aborts startup.
"""

import atexit
import logging
import os

from django.apps import apps
from django.conf import settings
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "textstore.settings")

application = get_wsgi_application()

logger = logging.getLogger(__name__)
logger.info(
    "Environment variables loaded: "
    f"TEXTSTORE_DATABASE_URL_EXISTS={bool(settings.TEXTSTORE_DATABASE_URL)} DEBUG={settings.DEBUG}"
)

gateway = apps.get_app_config("texts").gateway
gateway.start()
atexit.register(gateway.close)

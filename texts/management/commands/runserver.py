from django.apps import apps
from django.conf import settings
from django.core.management.base import CommandError
from django.core.management.commands.runserver import Command as RunserverCommand

from texts.exceptions import ConfigurationError


class Command(RunserverCommand):
    """Django's runserver, listening on TEXTSTORE_PORT unless a port is given."""

    default_port = str(settings.TEXTSTORE_PORT)

    def handle(self, *args, **options):
        # Checked before the autoreloader starts, so a missing URL exits the process
        try:
            apps.get_app_config("texts").gateway.check_configuration()
        except ConfigurationError as e:
            raise CommandError(str(e)) from e
        super().handle(*args, **options)

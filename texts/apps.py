from django.apps import AppConfig


class TextsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "texts"
    verbose_name = "Text store"

    def ready(self):
        from texts.gateway import PersistenceGateway
        from texts.services import TextRecordStore

        # Built here, started by the server entry point (textstore.wsgi)
        self.gateway = PersistenceGateway.from_settings()
        self.store = TextRecordStore(self.gateway)

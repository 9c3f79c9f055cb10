import atexit
import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class StorageConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "storage"

    store = None
    paginator = None

    def ready(self):
        # Imported here because the store module needs the app registry.
        from storage.pagination import Paginator
        from storage.store import Store

        self.store = Store.from_settings()
        self.paginator = Paginator.from_settings(self.store)
        atexit.register(self.store.close)
        logger.info(
            f"Store ready on '{self.store.using}' "
            f"(prefetch={self.store.prefetch_size}, snapshot={self.paginator.snapshot_mode})"
        )

"""Settings for the test suite: in-memory SQLite, short gateway delays."""

from textstore.settings import *  # noqa: F401,F403

TEXTSTORE_DATABASE_URL = "sqlite://:memory:"
DATABASES = {"default": database_from_url(TEXTSTORE_DATABASE_URL)}  # noqa: F405

TEXTSTORE_RETRY_DELAY = 0.05
TEXTSTORE_HEARTBEAT_INTERVAL = 0.05

LOGGING["root"]["level"] = "WARNING"  # noqa: F405

"""
Django settings for textstore.

Everything deployment-specific comes from the environment:

    TEXTSTORE_DATABASE_URL          - PostgreSQL or SQLite connection string (required to serve)
    PORT                            - Default port for ``manage.py runserver``
    TEXTSTORE_RETRY_DELAY           - Seconds between connection attempts
    TEXTSTORE_HEARTBEAT_INTERVAL    - Seconds between connection liveness probes
    TEXTSTORE_RETRY_WRITES          - Retry idempotent writes once (true/false)
    TEXTSTORE_CORS_ALLOWED_ORIGINS  - Comma-separated origins allowed by CORS
    TEXTSTORE_LOG_LEVEL             - Root log level
"""

import os

import dj_database_url


def env_bool(name: str, default: bool) -> bool:
    return os.environ.get(name, str(default)).lower() in ("1", "true", "yes")


def env_list(name: str, default: str = "") -> list[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "textstore-insecure-development-key")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = env_list("DJANGO_ALLOWED_HOSTS", "*")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "corsheaders",
    "rest_framework",
    "drf_spectacular",
    "texts",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "textstore.urls"
WSGI_APPLICATION = "textstore.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {},
    },
]

# Database

# key is an unbounded unique TextField, which MySQL/MariaDB cannot index
SUPPORTED_DATABASE_ENGINES = (
    "django.db.backends.postgresql",
    "django.db.backends.sqlite3",
)
POSTGRES_COMMIT_OPTION = "-c synchronous_commit=remote_apply"


def database_from_url(url: str) -> dict:
    """
    Build a DATABASES entry from a connection string.

    On PostgreSQL, commits wait until synchronous standbys have applied them.
    This only has an effect when the server sets synchronous_standby_names;
    without standbys it behaves like a plain local commit.

    Raises:
        ConfigurationError: If the URL names an unsupported database engine
    """
    from texts.exceptions import ConfigurationError

    database = dj_database_url.parse(url, conn_max_age=60, conn_health_checks=True)
    engine = database["ENGINE"]
    if engine not in SUPPORTED_DATABASE_ENGINES:
        raise ConfigurationError(
            f"Unsupported database engine {engine}; use PostgreSQL or SQLite",
            config_key="TEXTSTORE_DATABASE_URL",
        )
    if engine == "django.db.backends.postgresql":
        options = database.setdefault("OPTIONS", {})
        existing = options.get("options", "")
        if "synchronous_commit" not in existing:
            options["options"] = f"{existing} {POSTGRES_COMMIT_OPTION}".strip()
    return database


TEXTSTORE_DATABASE_URL = os.environ.get("TEXTSTORE_DATABASE_URL") or os.environ.get("DATABASE_URL")

DATABASES = {}
if TEXTSTORE_DATABASE_URL:
    DATABASES["default"] = database_from_url(TEXTSTORE_DATABASE_URL)

# Persistence gateway

TEXTSTORE_RETRY_DELAY = float(os.environ.get("TEXTSTORE_RETRY_DELAY", "5"))
TEXTSTORE_HEARTBEAT_INTERVAL = float(os.environ.get("TEXTSTORE_HEARTBEAT_INTERVAL", "10"))
TEXTSTORE_RETRY_WRITES = env_bool("TEXTSTORE_RETRY_WRITES", True)
TEXTSTORE_PORT = int(os.environ.get("PORT", "3001"))

# HTTP

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "UNAUTHENTICATED_USER": None,
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Text Store API",
    "DESCRIPTION": "Key-value text storage over HTTP",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

CORS_ALLOWED_ORIGINS = env_list("TEXTSTORE_CORS_ALLOWED_ORIGINS")
CORS_ALLOW_METHODS = ["GET", "POST", "OPTIONS"]
CORS_ALLOW_HEADERS = ["content-type"]
CORS_ALLOW_CREDENTIALS = False

USE_TZ = True
TIME_ZONE = "UTC"

# Logging

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("TEXTSTORE_LOG_LEVEL", "INFO"),
    },
}

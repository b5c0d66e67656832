"""
Entity Snapshots – Django Settings
====================================
Django is the host ORM. The snapshots app hooks into its pre_save
lifecycle and stores records in the entity_snapshot table.

Snapshot configuration is environment-backed and read once when
the snapshot manager is built.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "snapshots-dev-key-replace-before-deployment")

DEBUG = os.environ.get("DJANGO_DEBUG", "true").lower() == "true"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "snapshots",
]

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Snapshots ─────────────────────────────────────────────────
SNAPSHOT_AUTO_ENABLED = os.environ.get("SNAPSHOT_AUTO_ENABLED", "true")
SNAPSHOT_DEFAULT_MAX_DEPTH = int(os.environ.get("SNAPSHOT_DEFAULT_MAX_DEPTH", "1"))
SNAPSHOT_EXCLUDE_PROPERTIES = os.environ.get(
    "SNAPSHOT_EXCLUDE_PROPERTIES",
    "_state,_prefetched_objects_cache",
)

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "snapshots": {
            "handlers": ["console"],
            "level": os.environ.get("SNAPSHOT_LOG_LEVEL", "INFO"),
        },
    },
}

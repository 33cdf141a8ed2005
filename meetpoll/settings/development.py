"""
Development settings for MeetPoll project.

These settings override the base settings for local development environments.
"""

from .base import *

SECRET_KEY = env("SECRET_KEY", "django-insecure-development-key-not-for-production")

DEBUG = env("DEBUG", "True") == "True"

ALLOWED_HOSTS = ["*"]

# Local SQLite unless a Postgres host is configured
if not os.environ.get("POSTGRES_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# Local memory cache unless Redis is configured
if not os.environ.get("REDIS_URL"):
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "meetpoll-dev",
        }
    }

CACHE_DEBUG = True
CORS_ALLOW_ALL_ORIGINS = True

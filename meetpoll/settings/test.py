"""
Test settings for MeetPoll project.

These settings override the base settings for test environments.
"""

from .base import *

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Aggregation caching is exercised by the tests, so keep a real backend
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "meetpoll-tests",
    }
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

USE_I18N = False

TIME_ZONE = "UTC"

CALENDAR_SOURCE = {
    **CALENDAR_SOURCE,
    "BASE_URL": "https://calendar.test/v3",
    "TIMEOUT": 1,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": True,
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
        },
    },
    "loggers": {
        "": {
            "handlers": ["null"],
            "level": "CRITICAL",
            "propagate": False,
        },
    },
}

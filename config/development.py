from .base import *

DEBUG = True

# Development-only fallback; production must set SECRET_KEY in the environment
SECRET_KEY = SECRET_KEY or "django-insecure-development-key-change-me"

# Static files for development
STATIC_ROOT = BASE_DIR / "staticfiles"

# Simple logging for development
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "{levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
}

# config/settings/test.py
from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EMR_AUDIT = {
    **EMR_AUDIT,
    "LOG_VIEWS": True,
}

# caplog listens on the root logger
LOGGING = {
    **LOGGING,
    "loggers": {
        **LOGGING["loggers"],
        "emr_core": {"level": "INFO", "propagate": True},
    },
}

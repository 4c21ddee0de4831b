"""
Test settings for CashBus.
Optimized for fast test execution with an in-memory database
and in-process email and task execution.
"""
import os

from .base import *  # noqa: F403
from .base import BASE_DIR

SECRET_KEY = "test-secret-key-not-for-production-use-only"  # pragma: allowlist secret

# Use in-memory SQLite for fast tests (override DATABASE_URL if set)
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# If DATABASE_URL is explicitly set (like in CI), use it instead
if "DATABASE_URL" in os.environ:
    import dj_database_url

    DATABASES["default"] = dj_database_url.config(
        default=os.environ["DATABASE_URL"],
        conn_max_age=0,
    )

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "test-cache",
    }
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Letters land in django.core.mail.outbox
EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

# Run tasks inline
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_ENABLED = False

CASHBUS_LEGAL_ADMIN_EMAIL = "legal-desk@cashbus.test"
CASHBUS_OPERATOR_CONTACTS = {"dan": "pniot@dan.test"}

from cashbus.logging_config import get_logging_config  # noqa: E402

LOGGING = get_logging_config(
    base_dir=BASE_DIR,
    environment="test",
    log_level="WARNING",
)

DEBUG = False

ALLOWED_HOSTS = ["*"]

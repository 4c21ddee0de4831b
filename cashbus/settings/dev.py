"""
Local development overlay for CashBus.

Letters are written to disk instead of mailed, so nothing reaches a real
operator while the escalation sweep is exercised by hand.
"""

import dj_database_url

from cashbus.logging_config import get_logging_config

from .base import *  # noqa: F403
from .base import BASE_DIR, config

SECRET_KEY = config("SECRET_KEY", default="cashbus-local-only")  # pragma: allowlist secret
DEBUG = config("DEBUG", default=True, cast=bool)
ALLOWED_HOSTS = ["localhost", "127.0.0.1", "[::1]"]

# sqlite file by default; point DATABASE_URL at Postgres to mirror prod
DATABASES = {
    "default": dj_database_url.config(
        default=f"sqlite:///{BASE_DIR / 'cashbus-dev.sqlite3'}",
        conn_max_age=0,
    )
}

# One .log file per letter under sent_letters/
EMAIL_BACKEND = config(
    "EMAIL_BACKEND", default="django.core.mail.backends.filebased.EmailBackend"
)
EMAIL_FILE_PATH = BASE_DIR / "sent_letters"

CASHBUS_LEGAL_ADMIN_EMAIL = config(
    "CASHBUS_LEGAL_ADMIN_EMAIL", default="legal-desk@localhost"
)

LOGGING = get_logging_config(
    base_dir=BASE_DIR,
    environment="development",
    log_level="DEBUG",
)

"""
Django base settings for the CashBus project.

Shared settings that are common to development, production and test.
"""

from pathlib import Path

import redis
from celery.schedules import crontab
from decouple import config

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# =============================================================================
# APPLICATION DEFINITION
# =============================================================================

INSTALLED_APPS = [
    # Django core
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party - API
    "rest_framework",
    # CashBus application
    "cashbus.apps.CashBusConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "cashbus.middleware.RequestIdMiddleware",
    "cashbus.middleware.StructuredLoggingMiddleware",
]

X_FRAME_OPTIONS = "DENY"

ROOT_URLCONF = "cashbus_site.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "cashbus_site.wsgi.application"

# =============================================================================
# AUTHENTICATION & PASSWORD VALIDATION
# =============================================================================

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": (
            "django.contrib.auth.password_validation."
            "UserAttributeSimilarityValidator"
        ),
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

# =============================================================================
# DJANGO REST FRAMEWORK
# =============================================================================

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.UserRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "user": "1000/h",
    },
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 50,
    "EXCEPTION_HANDLER": "cashbus.api.exceptions.custom_exception_handler",
}

# =============================================================================
# INTERNATIONALIZATION
# =============================================================================

LANGUAGE_CODE = "he"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# =============================================================================
# STATIC FILES
# =============================================================================

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# =============================================================================
# DEFAULT FIELD TYPE
# =============================================================================

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# =============================================================================
# LOGGING
# =============================================================================

from cashbus.logging_config import get_logging_config  # noqa: E402

# Structured key=value logs with PII scrubbing on every handler
LOGGING = get_logging_config(
    base_dir=BASE_DIR,
    environment="production",  # Overridden in dev.py and test.py
    log_level="INFO",
)

# =============================================================================
# CACHE SETTINGS
# =============================================================================

REDIS_URL = config("REDIS_URL", default="redis://localhost:6379")

# Try Redis first, fall back to local memory cache if unavailable
try:
    r = redis.Redis.from_url(f"{REDIS_URL}/1", socket_connect_timeout=1)
    r.ping()
    r.close()

    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": f"{REDIS_URL}/1",
            "KEY_PREFIX": "cashbus",
            "TIMEOUT": 300,
        }
    }

except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError):
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "cashbus-cache",
            "TIMEOUT": 300,
        }
    }

# =============================================================================
# CELERY SETTINGS
# =============================================================================

CELERY_BROKER_URL = config("CELERY_BROKER_URL", default=f"{REDIS_URL}/0")
CELERY_RESULT_BACKEND = config("CELERY_RESULT_BACKEND", default=f"{REDIS_URL}/0")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = config("CASHBUS_CLAIM_TIMEZONE", default="Asia/Jerusalem")
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 minutes
CELERY_TASK_SOFT_TIME_LIMIT = 25 * 60  # 25 minutes

# The escalation sweep runs once a day; letters go out during business hours
CELERY_BEAT_SCHEDULE = {
    "daily-escalation-sweep": {
        "task": "cashbus.tasks.run_escalations",
        "schedule": crontab(hour=9, minute=0),
    },
}

# Enable Celery (can be disabled in development)
CELERY_ENABLED = config("CELERY_ENABLED", default=False, cast=bool)

# =============================================================================
# EMAIL
# =============================================================================

EMAIL_BACKEND = config(
    "EMAIL_BACKEND", default="django.core.mail.backends.smtp.EmailBackend"
)
EMAIL_HOST = config("EMAIL_HOST", default="localhost")
EMAIL_PORT = config("EMAIL_PORT", default=587, cast=int)
EMAIL_HOST_USER = config("EMAIL_HOST_USER", default="")
EMAIL_HOST_PASSWORD = config("EMAIL_HOST_PASSWORD", default="")
EMAIL_USE_TLS = config("EMAIL_USE_TLS", default=True, cast=bool)
EMAIL_TIMEOUT = config("EMAIL_TIMEOUT", default=30, cast=int)

DEFAULT_FROM_EMAIL = config(
    "DEFAULT_FROM_EMAIL", default="CashBus <noreply@cashbuses.com>"
)

# =============================================================================
# CASHBUS LEGAL WORKFLOW
# =============================================================================

# Sender of demand letters and escalation notices
CASHBUS_LEGAL_FROM_EMAIL = config(
    "CASHBUS_LEGAL_FROM_EMAIL", default="CashBus Legal <legal@cashbuses.com>"
)

# Receives a blind copy of every letter; also the recipient when an operator
# has no public contact address on file
CASHBUS_LEGAL_ADMIN_EMAIL = config(
    "CASHBUS_LEGAL_ADMIN_EMAIL", default="legal-desk@cashbuses.com"
)

# Elapsed days are counted in this timezone unless a timeline overrides it
CASHBUS_CLAIM_TIMEZONE = config("CASHBUS_CLAIM_TIMEZONE", default="Asia/Jerusalem")

# Dotted path to the NotificationSender used by the escalation sweep
CASHBUS_NOTIFICATION_SENDER = config(
    "CASHBUS_NOTIFICATION_SENDER",
    default="cashbus.escalation.notifications.EmailNotificationSender",
)

# Small claims court used when the claimant has no city on file
CASHBUS_DEFAULT_COURT_CITY = config(
    "CASHBUS_DEFAULT_COURT_CITY", default="תל אביב-יפו"
)

# Operator public contact addresses, keyed by operator id.
# Format: CASHBUS_OPERATOR_CONTACTS=egged:claims@egged.co.il,dan:pniot@dan.co.il
CASHBUS_OPERATOR_CONTACTS = config(
    "CASHBUS_OPERATOR_CONTACTS",
    default="",
    cast=lambda v: dict(
        pair.strip().split(":", 1) for pair in v.split(",") if ":" in pair
    ),
)

# =============================================================================
# SECURITY SETTINGS (Common)
# =============================================================================

SESSION_COOKIE_AGE = 60 * 60 * 24 * 14  # two weeks
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
# SESSION_COOKIE_SECURE set in prod.py (requires HTTPS)

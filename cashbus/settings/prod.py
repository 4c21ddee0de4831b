"""
Production settings for the CashBus project.

Inherits from base settings and enforces secure production defaults.
"""

import os

from .base import *  # noqa: F403
from .base import MIDDLEWARE, config

# =============================================================================
# WHITENOISE STATIC FILES (Production)
# =============================================================================

MIDDLEWARE.insert(
    MIDDLEWARE.index("django.middleware.security.SecurityMiddleware") + 1,
    "whitenoise.middleware.WhiteNoiseMiddleware",
)

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"
    },
}

# =============================================================================
# SECURITY SETTINGS (Production)
# =============================================================================

SECRET_KEY = config("SECRET_KEY")  # Required in production, no default

DEBUG = False

ALLOWED_HOSTS = [h.strip() for h in config("ALLOWED_HOSTS").split(",") if h.strip()]

SECURE_SSL_REDIRECT = config("SECURE_SSL_REDIRECT", default=True, cast=bool)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_HSTS_SECONDS = config("SECURE_HSTS_SECONDS", default=31536000, cast=int)
SECURE_HSTS_INCLUDE_SUBDOMAINS = config(
    "SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True, cast=bool
)

_csrf_origins = config("CSRF_TRUSTED_ORIGINS", default="")
if _csrf_origins:
    CSRF_TRUSTED_ORIGINS = [o.strip() for o in _csrf_origins.split(",") if o.strip()]

# =============================================================================
# DATABASE
# =============================================================================

# Prefer DATABASE_URL; SSL mode is controlled via the URL itself
if "DATABASE_URL" in os.environ:
    import dj_database_url

    DATABASES = {
        "default": dj_database_url.parse(
            os.environ["DATABASE_URL"],
            conn_max_age=config("DB_CONN_MAX_AGE", default=60, cast=int),
            conn_health_checks=config("DB_CONN_HEALTH_CHECKS", default=True, cast=bool),
        )
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": config("DB_NAME", default="cashbus"),
            "USER": config("DB_USER", default="cashbus"),
            "PASSWORD": config("DB_PASSWORD", default=""),
            "HOST": config("DB_HOST", default="localhost"),
            "PORT": config("DB_PORT", default="5432"),
            "CONN_MAX_AGE": config("DB_CONN_MAX_AGE", default=60, cast=int),
            "OPTIONS": {
                "sslmode": config("DB_SSLMODE", default="require"),
            },
        }
    }

# =============================================================================
# ERROR TRACKING (Sentry)
# =============================================================================

SENTRY_DSN = config("SENTRY_DSN", default=None)

if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.celery import CeleryIntegration
    from sentry_sdk.integrations.django import DjangoIntegration
    from sentry_sdk.integrations.redis import RedisIntegration

    from cashbus.logging_filters import PIIScrubberFilter, scrub_dict

    def filter_pii_from_errors(event, hint):
        """
        Remove claimant identity from error reports before sending to Sentry.

        Request bodies carry id numbers and addresses; exception messages can
        carry letter recipients.
        """
        if "request" in event:
            if "data" in event["request"]:
                event["request"]["data"] = "[REDACTED]"
            if "cookies" in event["request"]:
                event["request"]["cookies"] = "[REDACTED]"
            if "query_string" in event["request"]:
                event["request"]["query_string"] = "[REDACTED]"

        if "user" in event and "email" in event["user"]:
            event["user"]["email"] = "[REDACTED]"

        scrubber = PIIScrubberFilter()
        if "exception" in event:
            for exc in event["exception"].get("values", []):
                if "value" in exc:
                    exc["value"] = scrubber.scrub(str(exc["value"]))

        if "extra" in event:
            event["extra"] = scrub_dict(event["extra"], scrubber)

        return event

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[
            DjangoIntegration(),
            CeleryIntegration(),
            RedisIntegration(),
        ],
        environment=config("ENVIRONMENT", default="production"),
        traces_sample_rate=0.1,
        before_send=filter_pii_from_errors,
        send_default_pii=False,
        release=config("SENTRY_RELEASE", default=None),
    )

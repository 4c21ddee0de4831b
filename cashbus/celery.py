"""
Celery configuration for CashBus.

This module initializes the Celery application used to run the daily
escalation sweep and lawsuit document assembly.
"""

import os

from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "cashbus_site.settings")

app = Celery("cashbus")

# Load configuration from Django settings with the CELERY namespace
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()

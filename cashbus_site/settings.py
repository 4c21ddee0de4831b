"""
Django settings for the CashBus project.

This is a thin wrapper that imports all settings from cashbus.settings.dev
for development purposes.

For environment-specific settings:
- Development: Uses this file (imports cashbus.settings.dev)
- Production: Use cashbus.settings.prod (requires env vars)
- Tests: cashbus.settings.test (see pytest.ini)
"""

# Import all development settings
# This includes base settings + SECRET_KEY, DEBUG, ALLOWED_HOSTS, DATABASE, EMAIL
from cashbus.settings.dev import *  # noqa: F401, F403

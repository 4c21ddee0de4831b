from django.apps import AppConfig


class CashBusConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "cashbus"
    verbose_name = "CashBus"

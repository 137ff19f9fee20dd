"""Django app config for mathtutor_console (console + diagnostic chat)."""
from django.apps import AppConfig


class MathTutorConsoleDjangoConfig(AppConfig):
    """App config for mathtutor_console Django adapter."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "mathtutor_console.adapters.django"
    label = "mathtutor_console"
    verbose_name = "Math Tutor Console"

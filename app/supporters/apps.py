from django.apps import AppConfig


class SupportersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "supporters"
    verbose_name = "Supporters"

    def ready(self):
        """Connect the escrow settlement receiver."""
        from supporters import signals  # noqa: F401

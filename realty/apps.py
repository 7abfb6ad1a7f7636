from django.apps import AppConfig


class RealtyConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'realty'
    verbose_name = 'Property Platform'

    def ready(self):
        # Register signal handlers
        from . import signals  # noqa: F401

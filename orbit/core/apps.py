from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'orbit.core'
    label = 'core'

    def ready(self):
        """Import signals when app is ready"""
        import orbit.core.cache_signals  # noqa: F401

from django.apps import AppConfig


class OrgsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'orgs'
    verbose_name = 'Organizations'

    def ready(self):  # type: ignore[override]
        from . import receivers  # noqa: F401

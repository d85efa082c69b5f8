from django.apps import AppConfig


class AppUtilitiesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'app'
    verbose_name = 'Project'

    def ready(self):  # type: ignore[override]
        # Preload copy keys used by organization error messages and invitation mail
        from .common import keys

        keys.ready()

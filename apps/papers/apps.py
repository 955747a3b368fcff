from django.apps import AppConfig


class PapersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.papers'
    label = 'papers'
    verbose_name = 'Research Papers'

from django.apps import AppConfig


class SpecsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'renovo.specs'
    verbose_name = 'FFE specs'

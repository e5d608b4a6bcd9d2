from django.apps import AppConfig


class FormkitConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'formkit'
    verbose_name = 'Form Engine'

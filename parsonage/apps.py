from django.apps import AppConfig


class ParsonageConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'parsonage'
    verbose_name = 'Parsonage Tools'

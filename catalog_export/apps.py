from django.apps import AppConfig


class CatalogExportConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'catalog_export'
    verbose_name = 'Catalog export'

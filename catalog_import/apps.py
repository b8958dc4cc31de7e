from django.apps import AppConfig


class CatalogImportConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog_import"
    verbose_name = "Catalog import"

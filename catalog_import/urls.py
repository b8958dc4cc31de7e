from django.urls import path

from catalog_import.views.imports import (
    import_confirm,
    import_detail,
    import_list,
    import_validate,
)

app_name = "catalog_import"

urlpatterns = [
    path("imports/", import_list, name="import_list"),
    path("imports/validate/", import_validate, name="import_validate"),
    path("imports/confirm/", import_confirm, name="import_confirm"),
    path("imports/<int:pk>/", import_detail, name="import_detail"),
]

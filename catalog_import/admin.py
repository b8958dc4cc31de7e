from django.contrib import admin

from .models import AuditRecord, ImportJob, ImportPreviewRow, Product


class ImportPreviewRowInline(admin.TabularInline):
    model = ImportPreviewRow
    extra = 0
    fields = [
        "row_number",
        "sku",
        "name",
        "action",
        "field_changes",
        "validation_errors",
    ]
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = [
        "sku",
        "name",
        "base_price",
        "promo_price",
        "stock_quantity",
        "pack_size",
        "moq",
        "is_active",
    ]
    list_filter = ["is_active"]
    search_fields = ["sku", "name"]
    prepopulated_fields = {"slug": ["sku"]}


@admin.register(ImportJob)
class ImportJobAdmin(admin.ModelAdmin):
    list_display = [
        "file_name",
        "import_type",
        "mode",
        "status",
        "total_rows",
        "success_rows",
        "error_rows",
        "created_by",
        "created_at",
    ]
    list_filter = ["status", "import_type", "mode"]
    search_fields = ["file_name", "created_by"]
    date_hierarchy = "created_at"
    inlines = [ImportPreviewRowInline]

    def has_change_permission(self, request, obj=None):
        return False

    def has_add_permission(self, request):
        return False


@admin.register(AuditRecord)
class AuditRecordAdmin(admin.ModelAdmin):
    list_display = [
        "action",
        "entity_type",
        "entity_id",
        "success_count",
        "error_count",
        "actor",
        "created_at",
    ]
    list_filter = ["action"]
    readonly_fields = ["created_at"]

    def has_change_permission(self, request, obj=None):
        return False

    def has_add_permission(self, request):
        return False

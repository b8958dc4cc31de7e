from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sku", models.CharField(max_length=64, unique=True)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("base_price", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("promo_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("stock_quantity", models.PositiveIntegerField(default=0)),
                ("pack_size", models.PositiveIntegerField(default=1)),
                ("moq", models.PositiveIntegerField(default=1)),
                ("tax_rate", models.DecimalField(decimal_places=4, default=Decimal("0.20"), max_digits=5)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["sku"],
            },
        ),
        migrations.CreateModel(
            name="ImportJob",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("import_type", models.CharField(choices=[("FULL", "Full product import"), ("STOCK_ONLY", "Stock update"), ("PRICE_ONLY", "Price update")], max_length=20)),
                ("mode", models.CharField(choices=[("UPSERT", "Create and update"), ("UPDATE_ONLY", "Update only"), ("CREATE_ONLY", "Create only")], max_length=20)),
                ("file_name", models.CharField(max_length=255)),
                ("file_format", models.CharField(choices=[("DELIMITED", "Delimited text"), ("WORKBOOK", "Workbook")], max_length=20)),
                ("status", models.CharField(choices=[("VALIDATED", "Validated"), ("PROCESSING", "Processing"), ("COMPLETED", "Completed"), ("FAILED", "Failed")], default="VALIDATED", max_length=20)),
                ("total_rows", models.PositiveIntegerField(default=0)),
                ("success_rows", models.PositiveIntegerField(default=0)),
                ("error_rows", models.PositiveIntegerField(default=0)),
                ("created_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("executed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="AuditRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(choices=[("PRODUCT_IMPORT", "Product import")], max_length=40)),
                ("entity_type", models.CharField(max_length=40)),
                ("entity_id", models.CharField(max_length=64)),
                ("success_count", models.PositiveIntegerField(default=0)),
                ("error_count", models.PositiveIntegerField(default=0)),
                ("actor", models.CharField(blank=True, default="", max_length=150)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ImportPreviewRow",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("row_number", models.PositiveIntegerField()),
                ("sku", models.CharField(blank=True, default="", max_length=255)),
                ("name", models.CharField(blank=True, default="", max_length=255)),
                ("action", models.CharField(choices=[("CREATE", "Create"), ("UPDATE", "Update"), ("SKIP", "Skip"), ("ERROR", "Error")], max_length=10)),
                ("field_changes", models.JSONField(blank=True, default=dict)),
                ("validation_errors", models.JSONField(blank=True, default=list)),
                ("row_data", models.JSONField(blank=True, default=dict)),
                ("job", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="preview_rows", to="catalog_import.importjob")),
            ],
            options={
                "ordering": ["row_number"],
            },
        ),
        migrations.AddConstraint(
            model_name="importpreviewrow",
            constraint=models.UniqueConstraint(fields=("job", "row_number"), name="unique_preview_row_per_job"),
        ),
    ]

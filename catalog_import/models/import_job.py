from django.db import models


class ImportJob(models.Model):
    class ImportType(models.TextChoices):
        FULL = "FULL", "Full product import"
        STOCK_ONLY = "STOCK_ONLY", "Stock update"
        PRICE_ONLY = "PRICE_ONLY", "Price update"

    class Mode(models.TextChoices):
        UPSERT = "UPSERT", "Create and update"
        UPDATE_ONLY = "UPDATE_ONLY", "Update only"
        CREATE_ONLY = "CREATE_ONLY", "Create only"

    class Status(models.TextChoices):
        VALIDATED = "VALIDATED", "Validated"
        PROCESSING = "PROCESSING", "Processing"
        COMPLETED = "COMPLETED", "Completed"
        FAILED = "FAILED", "Failed"

    class FileFormat(models.TextChoices):
        DELIMITED = "DELIMITED", "Delimited text"
        WORKBOOK = "WORKBOOK", "Workbook"

    TERMINAL_STATUSES = (Status.COMPLETED, Status.FAILED)

    import_type = models.CharField(max_length=20, choices=ImportType.choices)
    mode = models.CharField(max_length=20, choices=Mode.choices)
    file_name = models.CharField(max_length=255)
    file_format = models.CharField(max_length=20, choices=FileFormat.choices)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.VALIDATED
    )
    total_rows = models.PositiveIntegerField(default=0)
    success_rows = models.PositiveIntegerField(default=0)
    error_rows = models.PositiveIntegerField(default=0)
    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    executed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.file_name} [{self.import_type}/{self.mode}] {self.status}"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES


class ImportPreviewRow(models.Model):
    class Action(models.TextChoices):
        CREATE = "CREATE", "Create"
        UPDATE = "UPDATE", "Update"
        SKIP = "SKIP", "Skip"
        ERROR = "ERROR", "Error"

    ACTIONABLE = (Action.CREATE, Action.UPDATE)

    job = models.ForeignKey(
        ImportJob, on_delete=models.CASCADE, related_name="preview_rows"
    )
    row_number = models.PositiveIntegerField()
    sku = models.CharField(max_length=255, blank=True, default="")
    name = models.CharField(max_length=255, blank=True, default="")
    action = models.CharField(max_length=10, choices=Action.choices)
    field_changes = models.JSONField(blank=True, default=dict)
    validation_errors = models.JSONField(blank=True, default=list)
    row_data = models.JSONField(blank=True, default=dict)

    class Meta:
        ordering = ["row_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["job", "row_number"],
                name="unique_preview_row_per_job",
            )
        ]

    def __str__(self):
        return f"Row {self.row_number} {self.sku or '-'}: {self.action}"

    def to_dict(self) -> dict:
        return {
            "rowNumber": self.row_number,
            "sku": self.sku,
            "name": self.name,
            "action": self.action,
            "fieldChanges": self.field_changes,
            "validationErrors": self.validation_errors,
        }

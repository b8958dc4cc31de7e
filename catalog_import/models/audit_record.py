from django.db import models


class AuditRecord(models.Model):
    class Action(models.TextChoices):
        PRODUCT_IMPORT = "PRODUCT_IMPORT", "Product import"

    action = models.CharField(max_length=40, choices=Action.choices)
    entity_type = models.CharField(max_length=40)
    entity_id = models.CharField(max_length=64)
    success_count = models.PositiveIntegerField(default=0)
    error_count = models.PositiveIntegerField(default=0)
    actor = models.CharField(max_length=150, blank=True, default="")
    metadata = models.JSONField(blank=True, default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.action} {self.entity_type}#{self.entity_id} by {self.actor or '?'}"

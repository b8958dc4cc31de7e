from .product import Product
from .import_job import ImportJob, ImportPreviewRow
from .audit_record import AuditRecord

__all__ = [
    "Product",
    "ImportJob",
    "ImportPreviewRow",
    "AuditRecord",
]

"""
Reconciliation engine: validated row + catalog state -> preview action.

Builds unsaved ImportPreviewRow objects for the job store to persist.
The catalog is only read here.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from catalog_import.models import ImportJob, ImportPreviewRow, Product
from catalog_import.services import catalog
from catalog_import.services.file_parser import SourceRow
from catalog_import.services.row_validator import (
    RowValidation,
    rules_for,
    validate_row,
)

Action = ImportPreviewRow.Action
Mode = ImportJob.Mode

MISSING_TARGET_MESSAGE = "Target does not exist: partial imports cannot create entries"


def json_value(value: Any) -> Any:
    """Make a parsed field value safe for a JSONField."""
    if isinstance(value, Decimal):
        return str(value)
    return value


def decide_action(
    validation: RowValidation,
    existing: Product | None,
    import_type: str,
    mode: str,
) -> str:
    """
    Pick the row action; the first matching rule wins.

    Appends the missing-target message to ``validation.errors`` when a
    partial import points at a SKU the catalog does not have; that is an
    error in every mode, UPDATE_ONLY included.
    """
    if not validation.is_valid:
        return Action.ERROR
    if existing is not None:
        if mode == Mode.CREATE_ONLY:
            return Action.SKIP
        return Action.UPDATE
    if not rules_for(import_type).create_allowed:
        validation.errors.append(MISSING_TARGET_MESSAGE)
        return Action.ERROR
    if mode == Mode.UPDATE_ONLY:
        return Action.SKIP
    return Action.CREATE


def compute_changes(
    product: Product,
    values: dict[str, Any],
    import_type: str,
) -> dict[str, dict[str, Any]]:
    """
    Minimal field-level diff between parsed row values and the product.

    Only fields present in the row whose value differs are included.
    """
    changes: dict[str, dict[str, Any]] = {}
    for field_name in rules_for(import_type).fields:
        if field_name not in values:
            continue
        old = catalog.current_value(product, field_name)
        new = values[field_name]
        if old != new:
            changes[field_name] = {"old": json_value(old), "new": json_value(new)}
    return changes


def reconcile_row(
    row: SourceRow,
    import_type: str,
    mode: str,
) -> ImportPreviewRow:
    """Validate one source row and classify it against the catalog."""
    validation = validate_row(row, import_type)

    existing = catalog.find_by_sku(validation.sku) if validation.is_valid else None

    action = decide_action(validation, existing, import_type, mode)

    field_changes: dict[str, dict[str, Any]] = {}
    if action == Action.UPDATE:
        field_changes = compute_changes(existing, validation.values, import_type)

    row_data = {"sku": validation.sku}
    for field_name in rules_for(import_type).fields:
        if row.has(field_name):
            row_data[field_name] = row.get(field_name)

    return ImportPreviewRow(
        row_number=row.line_number,
        sku=validation.sku[:255],
        name=row.get("name")[:255],
        action=action,
        field_changes=field_changes,
        validation_errors=list(validation.errors) if action == Action.ERROR else [],
        row_data=row_data,
    )

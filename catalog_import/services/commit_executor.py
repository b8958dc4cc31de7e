"""
Commit executor: apply the actionable preview rows of a claimed job.

Rows are applied one at a time, each inside its own savepoint, so a bad
row is counted and logged without undoing the rows around it.  No
transaction wraps the whole loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from catalog_import.models import ImportJob, ImportPreviewRow
from catalog_import.services import catalog
from catalog_import.services.errors import CommitRowError
from catalog_import.services.import_jobs import finalize_job
from catalog_import.services.reconciliation import compute_changes
from catalog_import.services.row_validator import rules_for

logger = logging.getLogger(__name__)

Action = ImportPreviewRow.Action


@dataclass
class CommitOutcome:
    """Final accounting for a confirmed job."""

    job: ImportJob
    success_rows: int
    error_rows: int

    @property
    def success(self) -> bool:
        """The commit ran and was finalized; row failures show in ``status``."""
        return self.job.is_terminal

    def to_dict(self) -> dict:
        return {
            "jobId": self.job.pk,
            "status": self.job.status,
            "success": self.success,
            "summary": {
                "success": self.success_rows,
                "errors": self.error_rows,
            },
        }


def _row_values(row: ImportPreviewRow, import_type: str) -> dict[str, Any]:
    """Re-parse the captured row text into typed field values."""
    values: dict[str, Any] = {}
    for field_name, parser in rules_for(import_type).parsers.items():
        raw = row.row_data.get(field_name, "")
        if not raw:
            continue
        try:
            values[field_name] = parser(raw)
        except ValueError as e:
            raise CommitRowError(row.row_number, f"{field_name}: {e}")
    return values


def apply_row(row: ImportPreviewRow, import_type: str) -> None:
    """
    Apply one CREATE or UPDATE preview row to the catalog.

    UPDATE patches are recomputed against the product as it is now, so
    a change made between validation and confirmation is not clobbered
    with stale values and unchanged fields are not rewritten.

    Raises:
        CommitRowError: the row can no longer be applied.
    """
    values = _row_values(row, import_type)

    if row.action == Action.CREATE:
        catalog.create_entry(row.sku, values)
        return

    product = catalog.find_by_sku(row.sku, for_update=True)
    if product is None:
        raise CommitRowError(row.row_number, f"product {row.sku} no longer exists")
    changes = compute_changes(product, values, import_type)
    catalog.update_entry(product, {f: values[f] for f in changes})


def execute_commit(job: ImportJob, actor: str) -> CommitOutcome:
    """
    Replay a PROCESSING job's preview in row order and finalize it.

    SKIP and ERROR rows are bypassed.  An unexpected exception stops the
    loop and the job is finalized as FAILED with the counts so far;
    rows already applied stay applied.
    """
    success_rows = 0
    error_rows = 0
    aborted = False

    rows = job.preview_rows.filter(action__in=ImportPreviewRow.ACTIONABLE).order_by(
        "row_number"
    )
    try:
        for row in rows:
            try:
                with transaction.atomic():
                    apply_row(row, job.import_type)
            except (CommitRowError, ValidationError, DatabaseError) as e:
                error_rows += 1
                logger.warning(
                    "Import job %s: row %s (%s) failed: %s",
                    job.pk,
                    row.row_number,
                    row.sku,
                    e,
                )
            else:
                success_rows += 1
    except Exception:
        aborted = True
        logger.exception(
            "Import job %s aborted after %d applied and %d failed rows",
            job.pk,
            success_rows,
            error_rows,
        )

    finalize_job(job, success_rows, error_rows, actor, aborted=aborted)
    return CommitOutcome(job=job, success_rows=success_rows, error_rows=error_rows)

"""
Catalog import pipeline: Upload -> Parse -> Validate/Reconcile -> Preview -> Confirm.

validate_import() never writes to the catalog; it persists a VALIDATED
ImportJob holding one preview row per source line.  confirm_import()
claims that job and applies its CREATE/UPDATE rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from catalog_import.models import ImportJob, ImportPreviewRow
from catalog_import.services.commit_executor import CommitOutcome, execute_commit
from catalog_import.services.file_parser import detect_format, parse_file
from catalog_import.services.import_jobs import claim_for_processing, create_job
from catalog_import.services.reconciliation import reconcile_row
from catalog_import.services.row_validator import rules_for

logger = logging.getLogger(__name__)

Action = ImportPreviewRow.Action


# ---------------------------------------------------------------------------
# Validate
# ---------------------------------------------------------------------------


@dataclass
class ValidationOutcome:
    """Result of validate_import -- everything a reviewer needs to see."""

    job: ImportJob
    rows: list[ImportPreviewRow]
    to_create: int = 0
    to_update: int = 0
    skipped: int = 0
    errors: int = 0

    def __post_init__(self):
        self.to_create = sum(1 for r in self.rows if r.action == Action.CREATE)
        self.to_update = sum(1 for r in self.rows if r.action == Action.UPDATE)
        self.skipped = sum(1 for r in self.rows if r.action == Action.SKIP)
        self.errors = sum(1 for r in self.rows if r.action == Action.ERROR)

    @property
    def total(self) -> int:
        return len(self.rows)

    def summary(self) -> dict:
        return {
            "total": self.total,
            "toCreate": self.to_create,
            "toUpdate": self.to_update,
            "skipped": self.skipped,
            "errors": self.errors,
        }

    def to_dict(self) -> dict:
        return {
            "jobId": self.job.pk,
            "preview": [r.to_dict() for r in self.rows],
            "summary": self.summary(),
        }


def validate_import(
    file_content: bytes,
    file_name: str,
    import_type: str,
    mode: str,
    actor: str = "",
    file_format: str | None = None,
) -> ValidationOutcome:
    """
    Parse, validate and reconcile an upload, then persist the preview.

    Args:
        file_content: Raw uploaded bytes.
        file_name: Original file name; picks the format when none is given.
        import_type: ImportJob.ImportType value.
        mode: ImportJob.Mode value.
        actor: Who uploaded the file.
        file_format: ImportJob.FileFormat value, overriding the extension.

    Returns:
        ValidationOutcome for the newly created VALIDATED job.

    Raises:
        ParseError: The file is empty, unreadable or unsupported; no job
            is created.
    """
    rules_for(import_type)
    if mode not in ImportJob.Mode.values:
        raise ValueError(f"Unknown import mode: {mode!r}")

    file_format = file_format or detect_format(file_name)
    parsed = parse_file(file_content, file_format)

    rows = [reconcile_row(source_row, import_type, mode) for source_row in parsed]

    job = create_job(
        import_type=import_type,
        mode=mode,
        file_name=file_name,
        file_format=file_format,
        created_by=actor,
        preview_rows=rows,
    )
    outcome = ValidationOutcome(job=job, rows=rows)
    logger.info(
        "Validated import job %s (%s, %s, %s): %s",
        job.pk,
        file_name,
        import_type,
        mode,
        outcome.summary(),
    )
    return outcome


# ---------------------------------------------------------------------------
# Confirm
# ---------------------------------------------------------------------------


def confirm_import(job_id: int, actor: str | None = None) -> CommitOutcome:
    """
    Apply a VALIDATED job's actionable rows to the catalog.

    Raises:
        ImportJob.DoesNotExist: Unknown job id.
        StateError: The job is not VALIDATED (already confirmed, running
            or finished); nothing is touched.
    """
    job = claim_for_processing(job_id)
    return execute_commit(job, actor if actor is not None else job.created_by)

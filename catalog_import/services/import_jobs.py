"""
Import job store and status state machine.

VALIDATED -> PROCESSING -> COMPLETED | FAILED

Every transition is a compare-and-swap on the stored status (a single
conditional UPDATE), so two confirmations racing from separate processes
cannot both claim the same job.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from catalog_import.models import AuditRecord, ImportJob, ImportPreviewRow
from catalog_import.services.errors import StateError

logger = logging.getLogger(__name__)

Status = ImportJob.Status


@transaction.atomic
def create_job(
    *,
    import_type: str,
    mode: str,
    file_name: str,
    file_format: str,
    created_by: str,
    preview_rows: list[ImportPreviewRow],
) -> ImportJob:
    """Persist a VALIDATED job together with its full preview."""
    job = ImportJob.objects.create(
        import_type=import_type,
        mode=mode,
        file_name=file_name[:255],
        file_format=file_format,
        status=Status.VALIDATED,
        total_rows=len(preview_rows),
        created_by=created_by,
    )
    for row in preview_rows:
        row.job = job
    ImportPreviewRow.objects.bulk_create(preview_rows)
    return job


def _swap_status(job_id: int, expected: str, new: str, **fields) -> bool:
    updated = ImportJob.objects.filter(pk=job_id, status=expected).update(
        status=new, **fields
    )
    return updated == 1


def claim_for_processing(job_id: int) -> ImportJob:
    """
    Move a job from VALIDATED to PROCESSING.

    Raises:
        ImportJob.DoesNotExist: no such job.
        StateError: the job is not (or is no longer) VALIDATED.
    """
    job = ImportJob.objects.get(pk=job_id)
    if job.status != Status.VALIDATED or not _swap_status(
        job_id, Status.VALIDATED, Status.PROCESSING
    ):
        job.refresh_from_db(fields=["status"])
        raise StateError(
            f"Import job {job_id} cannot be confirmed: status is {job.status}"
        )
    job.status = Status.PROCESSING
    return job


def finalize_job(
    job: ImportJob,
    success_rows: int,
    error_rows: int,
    actor: str,
    aborted: bool = False,
) -> ImportJob:
    """
    Record final counts, pick the terminal status and write the audit record.

    COMPLETED only when no row failed and the run was not aborted;
    otherwise FAILED.
    """
    if aborted or error_rows:
        final_status = Status.FAILED
    else:
        final_status = Status.COMPLETED
    executed_at = timezone.now()

    with transaction.atomic():
        if not _swap_status(
            job.pk,
            Status.PROCESSING,
            final_status,
            success_rows=success_rows,
            error_rows=error_rows,
            executed_at=executed_at,
        ):
            raise StateError(f"Import job {job.pk} is not being processed")

        AuditRecord.objects.create(
            action=AuditRecord.Action.PRODUCT_IMPORT,
            entity_type="ImportJob",
            entity_id=str(job.pk),
            success_count=success_rows,
            error_count=error_rows,
            actor=actor,
            metadata={
                "import_type": job.import_type,
                "mode": job.mode,
                "file_name": job.file_name,
                "status": final_status,
                "aborted": aborted,
            },
        )

    job.status = final_status
    job.success_rows = success_rows
    job.error_rows = error_rows
    job.executed_at = executed_at
    logger.info(
        "Import job %s finished %s: %d applied, %d failed",
        job.pk,
        final_status,
        success_rows,
        error_rows,
    )
    return job


def import_history(limit: int | None = None):
    """Most recent jobs first, for operational visibility."""
    if limit is None:
        limit = getattr(settings, "CATALOG_IMPORT_HISTORY_LIMIT", 50)
    return ImportJob.objects.order_by("-created_at", "-id")[:limit]

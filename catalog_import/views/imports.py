"""Catalog import endpoints: validate, confirm, history."""

from __future__ import annotations

import json

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from catalog_import.forms import ImportUploadForm
from catalog_import.models import ImportJob
from catalog_import.services.errors import ParseError, StateError
from catalog_import.services.import_jobs import import_history
from catalog_import.services.pipeline import confirm_import, validate_import


def _actor(request) -> str:
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return user.get_username()
    return "anonymous"


def _job_summary(job: ImportJob) -> dict:
    return {
        "id": job.pk,
        "createdAt": job.created_at.isoformat(),
        "importType": job.import_type,
        "mode": job.mode,
        "fileName": job.file_name,
        "status": job.status,
        "totalRows": job.total_rows,
        "successRows": job.success_rows,
        "errorRows": job.error_rows,
        "createdBy": job.created_by,
        "executedAt": job.executed_at.isoformat() if job.executed_at else None,
    }


# ---------------------------------------------------------------------------
# Validate / confirm
# ---------------------------------------------------------------------------


@require_POST
def import_validate(request):
    """Step 1: upload a file and get back the reviewable preview."""
    form = ImportUploadForm(request.POST, request.FILES)
    if not form.is_valid():
        return JsonResponse(
            {"error": "Invalid upload", "fields": form.errors.get_json_data()}, status=400
        )

    uploaded_file = form.cleaned_data["file"]
    try:
        outcome = validate_import(
            uploaded_file.read(),
            uploaded_file.name,
            form.cleaned_data["import_type"],
            form.cleaned_data["mode"],
            actor=_actor(request),
        )
    except ParseError as e:
        return JsonResponse({"error": str(e)}, status=400)

    return JsonResponse(outcome.to_dict(), status=201)


@require_POST
def import_confirm(request):
    """Step 2: apply a validated job."""
    try:
        payload = json.loads(request.body or b"{}")
        job_id = int(payload["jobId"])
    except (ValueError, KeyError, TypeError):
        return JsonResponse({"error": "Body must be JSON with an integer jobId"}, status=400)

    try:
        outcome = confirm_import(job_id, actor=_actor(request))
    except ImportJob.DoesNotExist:
        return JsonResponse({"error": f"Import job {job_id} not found"}, status=404)
    except StateError as e:
        return JsonResponse({"error": str(e)}, status=409)

    return JsonResponse(outcome.to_dict())


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@require_GET
def import_list(request):
    """Recent import jobs, newest first."""
    return JsonResponse({"jobs": [_job_summary(job) for job in import_history()]})


@require_GET
def import_detail(request, pk):
    """One job with its full preview."""
    job = get_object_or_404(ImportJob, pk=pk)
    data = _job_summary(job)
    data["preview"] = [row.to_dict() for row in job.preview_rows.all()]
    return JsonResponse(data)

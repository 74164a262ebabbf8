from fastapi import APIRouter, Depends

from app.core.exceptions import EditorBusyError, SchemaStoreError, SchemaValidationError
from app.dependencies import get_job_posting, get_schema_store
from app.models.job import JobPosting
from app.schemas.fields import JobContext
from app.schemas.job import (
    FieldDraftRequest, FieldSaveResponse, FieldSchemaResponse, FieldSuggestResponse
)
from app.services.field_schema_store import FieldSchemaStore
from app.services.field_suggestions import get_field_suggester
from app.services.schema_editor import SchemaEditor

router = APIRouter(prefix="/jobs", tags=["Custom Fields"])


@router.get("/{job_id}/fields", response_model=FieldSchemaResponse)
def get_fields(
    job: JobPosting = Depends(get_job_posting),
    store: FieldSchemaStore = Depends(get_schema_store),
):
    """Persisted custom fields in display order (empty when none are defined)."""
    return FieldSchemaResponse(job_posting_id=job.id, fields=store.load_schema(job.id))


@router.put("/{job_id}/fields", response_model=FieldSaveResponse)
def save_fields(
    draft: FieldDraftRequest,
    job: JobPosting = Depends(get_job_posting),
    store: FieldSchemaStore = Depends(get_schema_store),
):
    """
    Replace the posting's custom fields with the submitted draft.
    Invalid drafts are rejected field by field (422) without touching stored fields.
    """
    editor = SchemaEditor.from_draft(store, job.id, draft.fields)
    result = editor.save()
    if not result.ok:
        if result.reason == "validation":
            raise SchemaValidationError([issue.model_dump() for issue in result.errors])
        if result.reason == "busy":
            raise EditorBusyError(result.notice.description)
        raise SchemaStoreError(result.notice.description)
    return FieldSaveResponse(job_posting_id=job.id, fields=result.fields, notice=result.notice)


@router.post("/{job_id}/fields/suggest", response_model=FieldSuggestResponse)
def suggest_fields(
    draft: FieldDraftRequest,
    job: JobPosting = Depends(get_job_posting),
    store: FieldSchemaStore = Depends(get_schema_store),
    suggester=Depends(get_field_suggester),
):
    """
    Append suggested fields to the submitted draft and return it. Nothing is saved;
    a failed suggestion returns the draft unchanged with an informational notice.
    """
    editor = SchemaEditor.from_draft(store, job.id, draft.fields, suggester=suggester)
    context = JobContext(
        title=job.title or "",
        description=job.description or "",
        requirements=job.requirements or "",
    )
    added = editor.suggest_fields(context)
    return FieldSuggestResponse(fields=editor.fields, added=added, notice=editor.notice)

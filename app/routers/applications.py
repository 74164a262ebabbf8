from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from typing import List

from app.core.limiter import limiter, SUBMISSION_LIMIT
from app.database import get_db
from app.dependencies import get_form_renderer, get_job_posting, get_schema_store
from app.models.job import JobPosting
from app.schemas.application import (
    AnswersPayload, ApplicationCreate, ApplicationResponse, BundleResponse,
    CustomFieldResponseView, FormResponse,
)
from app.services.application_service import ApplicationService
from app.services.field_schema_store import FieldSchemaStore
from app.services.form_renderer import ApplicationFormRenderer

router = APIRouter(tags=["Applications"])


@router.get("/jobs/{job_id}/form", response_model=FormResponse)
def get_application_form(
    job: JobPosting = Depends(get_job_posting),
    store: FieldSchemaStore = Depends(get_schema_store),
    renderer: ApplicationFormRenderer = Depends(get_form_renderer),
):
    """Widget descriptors for the candidate-facing form, one per custom field."""
    return FormResponse(job_posting_id=job.id, widgets=renderer.render(store.load_schema(job.id)))


@router.post("/jobs/{job_id}/form/validate", response_model=BundleResponse)
def validate_answers(
    payload: AnswersPayload,
    job: JobPosting = Depends(get_job_posting),
    store: FieldSchemaStore = Depends(get_schema_store),
    renderer: ApplicationFormRenderer = Depends(get_form_renderer),
):
    """Pre-flight check: the submit-ready answer bundle, or 422 with one error per failing field."""
    bundle = renderer.build_bundle(store.load_schema(job.id), payload.answers)
    return BundleResponse(job_posting_id=job.id, answers=bundle.as_dict())


@router.post("/jobs/{job_id}/applications", response_model=ApplicationResponse, status_code=201)
@limiter.limit(SUBMISSION_LIMIT)
def submit_application(
    request: Request,
    payload: ApplicationCreate,
    job: JobPosting = Depends(get_job_posting),
    db: Session = Depends(get_db),
    renderer: ApplicationFormRenderer = Depends(get_form_renderer),
):
    service = ApplicationService(db, renderer=renderer)
    application, bundle = service.submit(job, payload.candidate_name, payload.candidate_email, payload.answers)
    return ApplicationResponse(
        id=application.id,
        job_posting_id=application.job_posting_id,
        candidate_name=application.candidate_name,
        candidate_email=application.candidate_email,
        status=application.status,
        created_at=application.created_at,
        answers=bundle.as_dict(),
    )


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: int, db: Session = Depends(get_db)):
    service = ApplicationService(db)
    application = service.get_application(application_id)
    return ApplicationResponse(
        id=application.id,
        job_posting_id=application.job_posting_id,
        candidate_name=application.candidate_name,
        candidate_email=application.candidate_email,
        status=application.status,
        created_at=application.created_at,
        answers=service.answers_of(application),
    )


@router.get("/applications/{application_id}/custom-fields", response_model=List[CustomFieldResponseView])
def get_custom_field_responses(application_id: int, db: Session = Depends(get_db)):
    """Stored answers with a display value per field type, for the recruiter's application view."""
    return ApplicationService(db).list_responses(application_id)

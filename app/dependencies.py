"""
Shared FastAPI dependencies.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.database import get_db
from app.models.job import JobPosting
from app.services.field_schema_store import FieldSchemaStore
from app.services.form_renderer import ApplicationFormRenderer


def get_job_posting(job_id: int, db: Session = Depends(get_db)) -> JobPosting:
    """Resolve the `job_id` path parameter or fail with 404."""
    job = db.get(JobPosting, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    return job


def get_schema_store(db: Session = Depends(get_db)) -> FieldSchemaStore:
    return FieldSchemaStore(db)


_renderer = ApplicationFormRenderer()


def get_form_renderer() -> ApplicationFormRenderer:
    return _renderer


__all__ = [
    "get_job_posting",
    "get_schema_store",
    "get_form_renderer",
]

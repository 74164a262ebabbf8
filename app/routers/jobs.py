import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.dependencies import get_job_posting
from app.models.job import JobPosting
from app.schemas.job import JobCreate, JobResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/jobs",
    tags=["Jobs"],
)

@router.post("/", response_model=JobResponse, status_code=201)
def create_job(
    job_in: JobCreate,
    db: Session = Depends(get_db),
):
    """
    Create a new job posting. Custom fields are managed separately under /jobs/{job_id}/fields.
    """
    db_job = JobPosting(**job_in.model_dump())
    db.add(db_job)
    db.commit()
    db.refresh(db_job)
    logger.info(f"Job posting {db_job.id} created", extra={"job_posting_id": db_job.id})
    return db_job

@router.get("/", response_model=List[JobResponse])
def get_jobs(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return db.query(JobPosting).order_by(JobPosting.id).offset(skip).limit(limit).all()

@router.get("/{job_id}", response_model=JobResponse)
def get_job(job: JobPosting = Depends(get_job_posting)):
    return job

@router.delete("/{job_id}")
def delete_job(
    job: JobPosting = Depends(get_job_posting),
    db: Session = Depends(get_db),
):
    """
    Hard delete. Custom fields and applications go with the posting (ORM cascade).
    """
    job_id = job.id
    db.delete(job)
    db.commit()
    logger.info(f"Job posting {job_id} deleted", extra={"job_posting_id": job_id})
    return {"message": "Job deleted successfully"}

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime

from app.schemas.fields import DraftField, FieldDefinition, Notice

# --- JOB SCHEMAS ---

class JobBase(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    requirements: Optional[str] = None

class JobCreate(JobBase):
    pass

class JobResponse(JobBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None

# --- CUSTOM FIELD SCHEMAS ---

class FieldDraftRequest(BaseModel):
    """The recruiter's complete draft, in display order."""
    fields: List[DraftField] = Field(default_factory=list)

class FieldSchemaResponse(BaseModel):
    job_posting_id: int
    fields: List[FieldDefinition]

class FieldSaveResponse(BaseModel):
    job_posting_id: int
    fields: List[FieldDefinition]
    notice: Notice

class FieldSuggestResponse(BaseModel):
    fields: List[DraftField]
    added: int
    notice: Optional[Notice] = None


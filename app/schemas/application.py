from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.schemas.fields import FormWidget

# --- FORM SCHEMAS ---

class FormResponse(BaseModel):
    job_posting_id: int
    widgets: List[FormWidget]

class AnswersPayload(BaseModel):
    """Raw answers keyed by field name, as posted by the candidate-facing form."""
    answers: Dict[str, Any] = Field(default_factory=dict)

class BundleResponse(BaseModel):
    job_posting_id: int
    answers: Dict[str, Any]

# --- APPLICATION SCHEMAS ---

class ApplicationCreate(AnswersPayload):
    candidate_name: str = Field(min_length=1)
    candidate_email: str = Field(min_length=3)

class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_posting_id: int
    candidate_name: str
    candidate_email: str
    status: str
    created_at: Optional[datetime] = None
    answers: Dict[str, Any] = Field(default_factory=dict)

class CustomFieldResponseView(BaseModel):
    id: int
    field_name: str
    field_label: str
    field_type: str
    field_value: Optional[str] = None
    file_url: Optional[str] = None
    display_value: str

import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.application import Application, CustomFieldResponse
from app.models.job import JobPosting
from app.schemas.fields import FieldDefinition, FieldType, SubmittedAnswerBundle, field_type_of
from app.services.field_schema_store import FieldSchemaStore
from app.services.form_renderer import ApplicationFormRenderer

logger = logging.getLogger(__name__)

NOT_PROVIDED = "Not provided"


def serialize_answer(field_type: FieldType, value: Any) -> Tuple[Optional[str], Optional[str]]:
    """(field_value, file_url) columns for one validated answer."""
    if field_type == FieldType.MULTISELECT:
        return json.dumps(list(value)), None
    if field_type == FieldType.CHECKBOX:
        return ("true" if value else "false"), None
    if field_type == FieldType.FILE:
        return value, value
    return str(value), None


def deserialize_answer(field_type: str, field_value: Optional[str]) -> Any:
    if field_value is None:
        return None
    if field_type == FieldType.MULTISELECT:
        try:
            return json.loads(field_value)
        except json.JSONDecodeError:
            return [field_value]
    if field_type == FieldType.CHECKBOX:
        return field_value == "true"
    if field_type == FieldType.NUMBER:
        try:
            return int(field_value)
        except ValueError:
            return float(field_value)
    return field_value


def format_field_value(field_value: Optional[str], field_type: str, file_url: Optional[str] = None) -> str:
    """Human-readable rendering of a stored answer for the recruiter's application view."""
    if not field_value:
        return NOT_PROVIDED

    if field_type == FieldType.CHECKBOX:
        return "Yes" if field_value == "true" else "No"
    if field_type == FieldType.DATE:
        try:
            return date.fromisoformat(field_value).strftime("%d %b %Y")
        except ValueError:
            return field_value
    if field_type == FieldType.MULTISELECT:
        try:
            values = json.loads(field_value)
        except json.JSONDecodeError:
            return field_value
        return ", ".join(str(v) for v in values) if isinstance(values, list) else field_value
    if field_type == FieldType.FILE:
        return file_url or field_value
    return field_value


class ApplicationService:
    """
    Receives candidate applications: validates custom answers against the
    posting's current schema and stores one response row per answered field.
    """

    def __init__(self, db: Session, renderer: Optional[ApplicationFormRenderer] = None):
        self.db = db
        self.renderer = renderer or ApplicationFormRenderer()
        self.store = FieldSchemaStore(db)

    def submit(
        self,
        job: JobPosting,
        candidate_name: str,
        candidate_email: str,
        answers: Dict[str, Any],
    ) -> Tuple[Application, SubmittedAnswerBundle]:
        fields = self.store.load_schema(job.id)
        # Raises FormValidationError before anything is written
        bundle = self.renderer.build_bundle(fields, answers)

        application = Application(
            job_posting_id=job.id,
            candidate_name=candidate_name.strip(),
            candidate_email=candidate_email.strip(),
            status="submitted",
        )
        application.responses = self._responses(fields, bundle)
        self.db.add(application)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(application)

        logger.info(
            f"Application {application.id} submitted for job {job.id}",
            extra={"application_id": application.id, "answered_fields": len(bundle)},
        )
        return application, bundle

    @staticmethod
    def _responses(fields: List[FieldDefinition], bundle: SubmittedAnswerBundle) -> List[CustomFieldResponse]:
        responses = []
        for field in fields:
            if field.name not in bundle:
                continue
            field_type = field_type_of(field)
            field_value, file_url = serialize_answer(field_type, bundle[field.name])
            responses.append(CustomFieldResponse(
                field_name=field.name,
                field_label=field.label,
                field_type=field_type.value,
                field_value=field_value,
                file_url=file_url,
            ))
        return responses

    def get_application(self, application_id: int) -> Application:
        application = self.db.get(Application, application_id)
        if application is None:
            raise NotFoundError(f"Application {application_id} not found")
        return application

    @staticmethod
    def answers_of(application: Application) -> Dict[str, Any]:
        return {
            response.field_name: deserialize_answer(response.field_type, response.field_value)
            for response in application.responses
        }

    def list_responses(self, application_id: int) -> List[Dict[str, Any]]:
        application = self.get_application(application_id)
        return [
            {
                "id": response.id,
                "field_name": response.field_name,
                "field_label": response.field_label,
                "field_type": response.field_type,
                "field_value": response.field_value,
                "file_url": response.file_url,
                "display_value": format_field_value(response.field_value, response.field_type, response.file_url),
            }
            for response in application.responses
        ]

import logging
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, SchemaStoreError
from app.models.custom_field import JobCustomField
from app.models.job import JobPosting
from app.schemas.fields import (
    CHOICE_TYPES,
    FIELD_DEFINITION_ADAPTER,
    FieldDefinition,
    field_type_of,
)

logger = logging.getLogger(__name__)


def definition_from_row(row: JobCustomField) -> FieldDefinition:
    payload = {
        "id": row.id,
        "job_posting_id": row.job_posting_id,
        "name": row.field_name,
        "label": row.field_label,
        "type": row.field_type,
        "required": bool(row.field_required),
        "order": row.field_order,
        "placeholder": row.field_placeholder,
        "help_text": row.field_help_text,
    }
    if row.field_options is not None:
        payload["options"] = row.field_options
    return FIELD_DEFINITION_ADAPTER.validate_python(payload)


def row_from_definition(job_posting_id: int, field: FieldDefinition, order: int) -> JobCustomField:
    field_type = field_type_of(field)
    return JobCustomField(
        job_posting_id=job_posting_id,
        field_name=field.name,
        field_label=field.label,
        field_type=field_type.value,
        field_required=field.required,
        field_options=list(field.options) if field_type in CHOICE_TYPES else None,
        field_order=order,
        field_placeholder=field.placeholder or None,
        field_help_text=field.help_text or None,
    )


class FieldSchemaStore:
    """
    Durable owner of each job posting's ordered custom field list.

    The only write primitive is replace_schema: the caller always hands over the
    complete new list, never a single-field change.
    """

    def __init__(self, db: Session):
        self.db = db

    def _require_job(self, job_posting_id: int) -> JobPosting:
        job = self.db.get(JobPosting, job_posting_id)
        if job is None:
            raise NotFoundError(f"Job posting {job_posting_id} not found")
        return job

    def load_schema(self, job_posting_id: int) -> List[FieldDefinition]:
        """Ordered fields of the job posting; an empty list when none are defined."""
        self._require_job(job_posting_id)
        rows = (
            self.db.query(JobCustomField)
            .filter(JobCustomField.job_posting_id == job_posting_id)
            .order_by(JobCustomField.field_order)
            .all()
        )
        return [definition_from_row(row) for row in rows]

    def replace_schema(self, job_posting_id: int, fields: Sequence[FieldDefinition]) -> List[FieldDefinition]:
        """
        Delete every field of the job posting, then insert `fields` with order = list position.
        Both steps run in one transaction; on failure it is rolled back and
        SchemaStoreError is raised, leaving the previous schema in place.
        """
        self._require_job(job_posting_id)
        rows = [row_from_definition(job_posting_id, field, order) for order, field in enumerate(fields)]

        try:
            deleted = (
                self.db.query(JobCustomField)
                .filter(JobCustomField.job_posting_id == job_posting_id)
                .delete(synchronize_session="fetch")
            )
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Replacing custom fields for job {job_posting_id} failed: {e}")
            raise SchemaStoreError(details={"job_posting_id": job_posting_id}) from e

        logger.info(
            f"Custom fields replaced for job {job_posting_id}",
            extra={"job_posting_id": job_posting_id, "deleted": deleted, "inserted": len(rows)},
        )
        for row in rows:
            self.db.refresh(row)
        return [definition_from_row(row) for row in rows]

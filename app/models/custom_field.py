from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base


class JobCustomField(Base):
    """One recruiter-defined question on a job posting's application form."""
    __tablename__ = "job_custom_fields"
    __table_args__ = (
        UniqueConstraint("job_posting_id", "field_name", name="uq_custom_field_name"),
        UniqueConstraint("job_posting_id", "field_order", name="uq_custom_field_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_posting_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), index=True, nullable=False)
    field_name = Column(String, nullable=False)
    field_label = Column(String, nullable=False)
    field_type = Column(String, nullable=False)
    field_required = Column(Boolean, default=False, nullable=False)
    # NULL unless field_type is select, radio or multiselect
    field_options = Column(JSON, nullable=True)
    field_order = Column(Integer, nullable=False)
    field_placeholder = Column(String, nullable=True)
    field_help_text = Column(Text, nullable=True)

    job_posting = relationship("JobPosting", back_populates="custom_fields")

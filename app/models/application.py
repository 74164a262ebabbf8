from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    job_posting_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), index=True, nullable=False)
    candidate_name = Column(String, nullable=False)
    candidate_email = Column(String, index=True, nullable=False)
    status = Column(String, default="submitted")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    job_posting = relationship("JobPosting", back_populates="applications")
    responses = relationship(
        "CustomFieldResponse",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="CustomFieldResponse.id",
    )


class CustomFieldResponse(Base):
    """
    A candidate's answer to one custom field.
    Label and type are copied from the field at submit time: saving a schema
    rewrites every field row, so answers cannot point at field ids.
    """
    __tablename__ = "custom_field_responses"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), index=True, nullable=False)
    field_name = Column(String, nullable=False)
    field_label = Column(String, nullable=False)
    field_type = Column(String, nullable=False)
    field_value = Column(Text, nullable=True)
    file_url = Column(String, nullable=True)

    application = relationship("Application", back_populates="responses")

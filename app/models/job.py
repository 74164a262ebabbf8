from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

class JobPosting(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    custom_fields = relationship(
        "JobCustomField",
        back_populates="job_posting",
        cascade="all, delete-orphan",
        order_by="JobCustomField.field_order",
    )
    applications = relationship(
        "Application",
        back_populates="job_posting",
        cascade="all, delete-orphan",
    )

# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import job, custom_field, application

# Explicit class exports for cleaner imports
from .job import JobPosting
from .custom_field import JobCustomField
from .application import Application, CustomFieldResponse

__all__ = [
    "JobPosting",
    "JobCustomField",
    "Application",
    "CustomFieldResponse",
]

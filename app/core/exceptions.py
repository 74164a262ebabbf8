from typing import Any, Dict, List, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class NotFoundError(AppException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND"
        )

class FieldValidationError(AppException):
    """Base for field-scoped validation failures. `errors` holds one dict per failing field."""
    def __init__(self, message: str, errors: List[Dict[str, Any]], error_code: str):
        self.errors = errors
        super().__init__(
            message=message,
            status_code=422,
            error_code=error_code,
            details={"errors": errors}
        )

class SchemaValidationError(FieldValidationError):
    def __init__(self, errors: List[Dict[str, Any]]):
        super().__init__("Custom fields failed validation", errors, "SCHEMA_VALIDATION_ERROR")

class FormValidationError(FieldValidationError):
    def __init__(self, errors: List[Dict[str, Any]]):
        super().__init__("Application form failed validation", errors, "FORM_VALIDATION_ERROR")

class SchemaStoreError(AppException):
    def __init__(self, message: str = "Failed to save custom fields", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="SCHEMA_STORE_ERROR",
            details=details
        )

class EditorBusyError(AppException):
    def __init__(self, message: str = "Another operation is already in progress"):
        super().__init__(
            message=message,
            status_code=409,
            error_code="EDITOR_BUSY"
        )

class AIError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="AI_SERVICE_UNAVAILABLE",
            details=details
        )

class AIKillSwitchError(AppException):
    def __init__(self):
        super().__init__(
            message="AI services are currently offline for maintenance.",
            status_code=503,
            error_code="AI_KILL_SWITCH_ACTIVE"
        )

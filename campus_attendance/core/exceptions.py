from typing import Any, Dict, Optional
from http import HTTPStatus

class CustomHTTPException(Exception):
    """Custom HTTP exception with additional error information (Flask-compatible)"""
    def __init__(
        self,
        status_code: int,
        detail: str,
        error_type: str = "general_error",
        extra_data: Optional[Dict[str, Any]] = None
    ):
        super().__init__(detail)
        self.status_code = int(status_code)
        self.detail = detail
        self.error_type = error_type
        self.extra_data = extra_data or {}

class ValidationError(CustomHTTPException):
    """Validation error exception"""
    def __init__(self, message: str, field: str = None, value: Any = None, errors: list = None):
        extra_data = {}
        if field:
            extra_data["field"] = field
        if value is not None:
            extra_data["value"] = str(value)
        if errors:
            extra_data["errors"] = errors

        super().__init__(
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            detail=message,
            error_type="validation_error",
            extra_data=extra_data
        )

class StorageError(CustomHTTPException):
    """Persistence layer unavailable or failed; nothing was written"""
    def __init__(self, message: str = "Storage temporarily unavailable", operation: str = None):
        extra_data = {}
        if operation:
            extra_data["operation"] = operation

        super().__init__(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail=message,
            error_type="storage_error",
            extra_data=extra_data
        )

class ResourceNotFoundError(CustomHTTPException):
    """Resource not found exception"""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"{resource_type} with ID {resource_id} not found",
            error_type="resource_not_found",
            extra_data={"resource_type": resource_type, "resource_id": resource_id}
        )

class ConflictError(CustomHTTPException):
    """Conflict error exception"""
    def __init__(self, message: str, field: str = None):
        extra_data = {}
        if field:
            extra_data["field"] = field

        super().__init__(
            status_code=HTTPStatus.CONFLICT,
            detail=message,
            error_type="conflict_error",
            extra_data=extra_data
        )

class InvalidQRTokenError(CustomHTTPException):
    """Token unknown, bound to another session, or expired"""
    def __init__(self, message: str = "Invalid or expired QR code"):
        super().__init__(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=message,
            error_type="invalid_qr_token"
        )

class DuplicateAttendanceError(CustomHTTPException):
    """Duplicate attendance exception"""
    def __init__(self, session_id: str = None, student_id: str = None,
                 message: str = "Attendance already marked for this session"):
        extra_data = {}
        if session_id:
            extra_data["session_id"] = session_id
        if student_id:
            extra_data["student_id"] = student_id

        super().__init__(
            status_code=HTTPStatus.CONFLICT,
            detail=message,
            error_type="duplicate_attendance",
            extra_data=extra_data
        )

# Utility functions for raising exceptions
def raise_validation_error(message: str, field: str = None, value: Any = None):
    """Raise a validation error"""
    raise ValidationError(message, field, value)

def raise_resource_not_found(resource_type: str, resource_id: str):
    """Raise a resource not found error"""
    raise ResourceNotFoundError(resource_type, resource_id)

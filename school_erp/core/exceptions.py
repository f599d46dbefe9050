# school_erp/core/exceptions.py
"""Custom exceptions for the School ERP application."""
from fastapi import HTTPException
from typing import Any, Dict, Optional


class SchoolERPException(HTTPException):
    """Base exception for School ERP application."""
    def __init__(
        self,
        status_code: int,
        detail: Any,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(SchoolERPException):
    """Exception raised when a resource does not exist in the caller's school."""
    def __init__(self, resource: str):
        super().__init__(status_code=404, detail=f"{resource} not found")


class ValidationError(SchoolERPException):
    """Exception raised when a request breaks a business rule."""
    def __init__(self, message: str, field: Optional[str] = None):
        detail = {"error": "Validation Error", "message": message}
        if field:
            detail["field"] = field
        super().__init__(status_code=400, detail=detail)


class AuthenticationError(SchoolERPException):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            status_code=401,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"}
        )


class PermissionDenied(SchoolERPException):
    def __init__(self, message: str = "Forbidden: insufficient permissions"):
        super().__init__(status_code=403, detail=message)


class ConflictError(SchoolERPException):
    """Exception raised when a unique value is already taken."""
    def __init__(self, field: str, value: str):
        super().__init__(
            status_code=409,
            detail={
                "error": f"Duplicate {field}",
                "message": f"A record with this {field} already exists",
                "field": field,
                "value": value
            }
        )


class UpstreamServiceError(SchoolERPException):
    """Exception raised when an external service (Tally) cannot be reached."""
    def __init__(self, service: str, message: str):
        super().__init__(
            status_code=502,
            detail={
                "error": f"{service} unavailable",
                "message": message
            }
        )

"""
Custom exception classes for the application.

Every error carries a machine-readable code, an HTTP status and a details
dict so routes can serialize it with AppError.to_dict().
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "FILE_UNREADABLE")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# UPLOAD FILE ERRORS
# ===================

class FileUnreadableError(ValidationError):
    """No candidate encoding or sheet reader could parse the upload."""

    def __init__(
        self,
        message: str,
        attempted_encodings: Optional[list[str]] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="FILE_UNREADABLE",
            message=message,
            details={
                "attempted_encodings": attempted_encodings or [],
                **(details or {})
            }
        )


class FileTooLargeError(AppError):
    """Upload exceeds the configured size limit (413)."""

    def __init__(self, size_bytes: int, max_bytes: int):
        super().__init__(
            code="FILE_TOO_LARGE",
            message=f"File exceeds the {max_bytes // (1024 * 1024)} MB limit",
            status_code=413,
            details={"size_bytes": size_bytes, "max_bytes": max_bytes}
        )


# ===================
# COLUMN MAPPING ERRORS
# ===================

class MissingRequiredColumnError(ValidationError):
    """One or more required canonical fields have no mapped column."""

    def __init__(self, missing_fields: list[str], labels: Optional[dict[str, str]] = None):
        labels = labels or {}
        self.missing_fields = list(missing_fields)
        super().__init__(
            code="MISSING_REQUIRED_COLUMN",
            message=f"Missing required columns: {', '.join(labels.get(f, f) for f in missing_fields)}",
            details={
                "missing_fields": self.missing_fields,
                "missing_labels": [labels.get(f, f) for f in missing_fields],
            }
        )


# ===================
# PRICING ERRORS
# ===================

class PricingError(ValidationError):
    """Price tiers cannot be derived from the given rate."""

    def __init__(self, category: str, monthly_rate: Any):
        super().__init__(
            code="INVALID_PUBLISHED_RATE",
            message="Published monthly rate must be a positive number",
            details={"category": category, "monthly_rate": str(monthly_rate)}
        )


# ===================
# UPLOAD SESSION ERRORS
# ===================

class DuplicateIdentifierError(ConflictError):
    """Upload identifiers collide with the owner's existing inventory."""

    def __init__(self, identifiers: list[str], owner_id: str):
        self.identifiers = list(identifiers)
        super().__init__(
            code="DUPLICATE_IDENTIFIER",
            message=f"{len(identifiers)} identifiers already exist in your inventory",
            details={"identifiers": self.identifiers, "owner_id": owner_id}
        )


class UploadSessionNotFoundError(NotFoundError):
    """Upload session expired or never existed."""

    def __init__(self, session_id: str):
        super().__init__(
            resource="Upload session",
            identifier=session_id,
            code="UPLOAD_SESSION_NOT_FOUND"
        )


class InvalidSessionStateError(ConflictError):
    """Operation is not allowed in the session's current state."""

    def __init__(self, operation: str, current_state: str, allowed_states: list[str]):
        super().__init__(
            code="INVALID_SESSION_STATE",
            message=f"Cannot {operation} an upload session in state {current_state}",
            details={
                "operation": operation,
                "current_state": current_state,
                "allowed_states": allowed_states,
            }
        )

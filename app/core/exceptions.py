"""Custom exceptions for the application."""

from typing import Any


class AppException(Exception):
    """Base exception for all application exceptions."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        super().__init__(self.message)


# Authentication Exceptions
class AuthenticationError(AppException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed", details: dict | None = None):
        super().__init__(
            message=message,
            status_code=401,
            error_code="AUTHENTICATION_ERROR",
            details=details,
        )


class InvalidCredentialsError(AuthenticationError):
    """Raised when credentials are invalid."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message=message)
        self.error_code = "INVALID_CREDENTIALS"


class TokenExpiredError(AuthenticationError):
    """Raised when token has expired."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message=message)
        self.error_code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """Raised when token is invalid."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message=message)
        self.error_code = "INVALID_TOKEN"


# Resource Exceptions
class NotFoundError(AppException):
    """Raised when resource is not found."""

    def __init__(
        self, resource: str = "Resource", identifier: str | None = None
    ):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier},
        )


class ConflictError(AppException):
    """Raised when resource conflicts."""

    def __init__(self, message: str = "Resource conflict", details: dict | None = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            details=details,
        )


# Validation Exceptions
class ValidationError(AppException):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class InvalidContactError(ValidationError):
    """Raised when the contact field is neither a valid phone nor a valid email."""

    def __init__(self, message: str, reason: str):
        super().__init__(
            message=message,
            details={"field": "contact", "reason": reason, "errors": {"contact": message}},
        )
        self.error_code = "INVALID_CONTACT"


class ConfirmationRequiredError(ValidationError):
    """Raised when a destructive action is requested without confirmation."""

    def __init__(self, message: str = "This action must be confirmed"):
        super().__init__(message=message)
        self.error_code = "CONFIRMATION_REQUIRED"


class FileTooLargeError(ValidationError):
    """Raised when file exceeds max size."""

    def __init__(self, max_size_mb: int, actual_size_mb: float):
        super().__init__(
            message=f"File exceeds maximum size of {max_size_mb}MB",
            details={"max_size_mb": max_size_mb, "actual_size_mb": actual_size_mb},
        )
        self.error_code = "FILE_TOO_LARGE"


# Feedback pipeline Exceptions
class UploadFailedError(AppException):
    """Raised when an attachment could not be stored. Aborts the submission."""

    def __init__(self, stage: str, message: str | None = None):
        super().__init__(
            message=message or f"Failed to upload {stage} image",
            status_code=502,
            error_code="UPLOAD_FAILED",
            details={"stage": stage},
        )
        self.stage = stage


class PersistFailedError(AppException):
    """Raised when the record store rejects a new submission."""

    def __init__(self, message: str = "Failed to save feedback. Please try again."):
        super().__init__(
            message=message,
            status_code=503,
            error_code="PERSIST_FAILED",
        )


class DeleteFailedError(AppException):
    """Raised when a submission could not be deleted."""

    def __init__(
        self,
        feedback_id: str,
        message: str = "Error deleting feedback. Please try again.",
        status_code: int = 503,
    ):
        super().__init__(
            message=message,
            status_code=status_code,
            error_code="DELETE_FAILED",
            details={"feedback_id": feedback_id},
        )
        self.feedback_id = feedback_id


class DeleteInProgressError(ConflictError):
    """Raised when a delete for the same record is already running."""

    def __init__(self, feedback_id: str):
        super().__init__(
            message="A delete for this feedback is already in progress",
            details={"feedback_id": feedback_id},
        )
        self.error_code = "DELETE_IN_PROGRESS"


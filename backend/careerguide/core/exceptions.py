"""
Custom Exceptions for the Career Guidance API
=============================================

Every error the API returns is one of these. The exception handler in
`careerguide.main` turns them into the standard envelope:

    {"success": false, "message": "...", "code": "...", "details": {...}}

Usage:
    from careerguide.core.exceptions import CourseNotFoundError

    course = await store.get(COURSES, course_id)
    if not course:
        raise CourseNotFoundError(course_id)
"""

from typing import Optional, Any, Dict


class CareerGuideError(Exception):
    """Base exception for all API errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400)
# ============================================

class ValidationError(CareerGuideError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, code: str = "VALIDATION_ERROR"):
        details = {"field": field} if field else {}
        super().__init__(message, code=code, details=details)


class MissingFieldsError(ValidationError):
    """One or more required fields were absent"""

    def __init__(self, fields: list, message: str = "Missing required fields"):
        super().__init__(message, code="MISSING_FIELDS")
        self.details = {"fields": fields}


class InvalidFileTypeError(ValidationError):
    """Uploaded file type not allowed"""

    def __init__(self, file_type: str, allowed_types: list):
        super().__init__(
            f"File type '{file_type}' not allowed. Allowed: {', '.join(allowed_types)}"
        )
        self.code = "INVALID_FILE_TYPE"
        self.details = {"file_type": file_type, "allowed_types": allowed_types}


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds the size limit"""

    def __init__(self, size: int, max_size: int):
        super().__init__(f"File too large. Maximum size is {max_size // 1024 // 1024}MB")
        self.code = "FILE_TOO_LARGE"
        self.details = {"size": size, "max_size": max_size}


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(CareerGuideError):
    """Caller could not be authenticated"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", code: str = "AUTH_FAILED"):
        super().__init__(message, code=code)


class MissingTokenError(AuthenticationError):
    """No bearer token supplied"""

    def __init__(self):
        super().__init__("No authorization token provided", code="TOKEN_MISSING")


class InvalidTokenError(AuthenticationError):
    """Token failed verification"""

    def __init__(self):
        super().__init__("Invalid token", code="INVALID_TOKEN")


class AuthorizationError(CareerGuideError):
    """Caller is authenticated but not allowed"""

    status_code = 403

    def __init__(self, message: str = "Not authorized", code: str = "NOT_AUTHORIZED"):
        super().__init__(message, code=code)


class RoleNotAllowedError(AuthorizationError):
    """Role claim is not in the endpoint's allow-list"""

    def __init__(self, role: Optional[str], allowed: list):
        super().__init__("Unauthorized role", code="ROLE_NOT_ALLOWED")
        self.details = {"role": role, "allowed_roles": allowed}


class EmailNotVerifiedError(AuthorizationError):
    """Identity exists but email has not been verified"""

    def __init__(self):
        super().__init__("Email not verified", code="EMAIL_NOT_VERIFIED")


# ============================================
# Resource Errors (404)
# ============================================

class ResourceNotFoundError(CareerGuideError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class CourseNotFoundError(ResourceNotFoundError):
    def __init__(self, course_id: str):
        super().__init__("Course", course_id)


class ApplicationNotFoundError(ResourceNotFoundError):
    def __init__(self, application_id: str):
        super().__init__("Application", application_id)


class AdmissionNotFoundError(ResourceNotFoundError):
    def __init__(self, admission_id: str):
        super().__init__("Admission", admission_id)


class StudentNotFoundError(ResourceNotFoundError):
    def __init__(self, student_id: str):
        super().__init__("Student", student_id)


class JobNotFoundError(ResourceNotFoundError):
    def __init__(self, job_id: str):
        super().__init__("Job", job_id)


class EventNotFoundError(ResourceNotFoundError):
    def __init__(self, event_id: str):
        super().__init__("Event", event_id)


# ============================================
# Conflict Errors (409)
# ============================================

class ConflictError(CareerGuideError):
    """Request conflicts with the current state of a document"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class NoSeatsAvailableError(ConflictError):
    """Course has no seats left to reserve"""

    def __init__(self, course_id: str):
        super().__init__(
            "No seats available for this course",
            code="NO_SEATS_AVAILABLE",
            details={"course_id": course_id}
        )


class StaleStatusError(ConflictError):
    """Document status changed between read and write"""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} was modified concurrently, reload and try again",
            code="STALE_STATUS",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class DuplicateApplicationError(ConflictError):
    def __init__(self, course_id: str):
        super().__init__(
            "You have already applied to this course",
            code="DUPLICATE_APPLICATION",
            details={"course_id": course_id}
        )


# ============================================
# Upstream Provider Errors
# ============================================

class ProviderError(CareerGuideError):
    """Identity provider or document store call failed

    `message` is static text for the client; the provider's own message is
    kept in `provider_message` and only surfaced in debug mode.
    """

    status_code = 500

    def __init__(self, message: str, provider_message: str = "", code: str = "PROVIDER_ERROR",
                 status_code: Optional[int] = None):
        super().__init__(message, code=code, status_code=status_code)
        self.provider_message = provider_message


class RegistrationFailedError(ProviderError):
    def __init__(self, provider_message: str = ""):
        super().__init__("Registration failed", provider_message, code="REGISTRATION_FAILED", status_code=400)


class LoginFailedError(ProviderError):
    def __init__(self, provider_message: str = ""):
        super().__init__("Login failed", provider_message, code="LOGIN_FAILED", status_code=400)


class StorageError(ProviderError):
    """File storage upload failed"""

    def __init__(self, provider_message: str = ""):
        super().__init__("File upload failed", provider_message, code="STORAGE_ERROR")


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: CareerGuideError, include_provider_message: bool = False) -> Dict[str, Any]:
    """Convert exception to the API error envelope"""
    body: Dict[str, Any] = {
        "success": False,
        "message": error.message,
        "code": error.code,
    }
    if error.details:
        body["details"] = error.details
    if include_provider_message and isinstance(error, ProviderError) and error.provider_message:
        body["error"] = error.provider_message
    return body

"""Exception taxonomy for AccessNav.

Every error that can end a request is an ``AccessNavError``. The API layer
translates them into the structured error payload; nothing here knows about
HTTP beyond the status code each kind maps to.
"""

from typing import Any, Dict, Iterable, Optional


class AccessNavError(Exception):
    """Base exception for AccessNav."""

    status_code = 400
    code = "ERROR"

    def __init__(
        self,
        message: str = "An error occurred",
        *,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def type(self) -> str:
        return type(self).__name__

    def to_error(self) -> Dict[str, Any]:
        """Return the ``error`` member of the response payload."""
        error: Dict[str, Any] = {"type": self.type, "code": self.code}
        error.update(self.details)
        return error


class AuthenticationError(AccessNavError):
    """Raised when no valid principal is attached to the request."""

    status_code = 401
    code = "AUTHENTICATION_REQUIRED"


class AuthorizationError(AccessNavError):
    """Raised when a known principal lacks a permission, role or ownership."""

    status_code = 403
    code = "PERMISSION_DENIED"

    def __init__(
        self,
        message: str = "Insufficient permissions",
        *,
        required_permission: Optional[str] = None,
        required_permissions: Optional[Iterable[str]] = None,
        required_roles: Optional[Iterable[str]] = None,
        code: Optional[str] = None,
    ):
        details: Dict[str, Any] = {}
        if required_permission is not None:
            details["required_permission"] = required_permission
        if required_permissions is not None:
            details["required_permissions"] = list(required_permissions)
        if required_roles is not None:
            details["required_roles"] = list(required_roles)
        super().__init__(message, code=code, details=details)
        self.required_permission = required_permission
        self.required_permissions = details.get("required_permissions")
        self.required_roles = details.get("required_roles")


class NotFoundError(AccessNavError):
    """Raised when a role, permission, assignment or resource does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AccessNavError):
    """Raised on duplicate names, duplicate assignments or roles still in use."""

    status_code = 409
    code = "CONFLICT"


class InvalidOperationError(AccessNavError):
    """Raised when attempting to mutate or delete a system role."""

    status_code = 400
    code = "INVALID_OPERATION"


class ValidationError(AccessNavError):
    """Raised when input is well-typed but semantically malformed."""

    status_code = 422
    code = "VALIDATION_ERROR"


class PermissionCheckError(AccessNavError):
    """Raised when an authorization check could not be completed.

    The request is denied, but the failure is reported as an internal error
    rather than as missing permissions.
    """

    status_code = 500
    code = "PERMISSION_CHECK_FAILED"

    def __init__(self, message: str = "Internal server error during permission check"):
        super().__init__(message)

from fastapi import status
from typing import Any, Dict, List, Optional


class APIError(Exception):
    """Base error rendered by the standardized error envelope."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "ERROR"
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[Any] = None,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors if errors is not None else []
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.extra = extra or {}
        super().__init__(self.message)


class Unauthenticated(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    default_message = "Unauthenticated"


class InvalidCredentials(Unauthenticated):
    code = "INVALID_CREDENTIALS"
    default_message = "Incorrect email or password"

    def __init__(self):
        super().__init__(extra={"error": "Unauthorized"})


class AccountInactive(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "ACCOUNT_INACTIVE"
    default_message = "Account is inactive"


class InvalidRoleSpec(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_ROLES"
    default_message = "Invalid roles specified"


class InsufficientPermissions(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "INSUFFICIENT_PERMISSIONS"
    default_message = "Insufficient permissions"


class ValidationFailed(APIError):
    """Field-level failure; ``errors`` maps a field path to its messages."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_FAILED"
    default_message = "Validation failed"

    def __init__(
        self,
        errors: Optional[Dict[str, List[str]]] = None,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message=message, errors=errors or {}, status_code=status_code)


class NotFound(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"


class Conflict(APIError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "The write conflicts with existing data"


class UserNotFound(NotFound):
    default_message = "User not found"


class ProductNotFound(NotFound):
    default_message = "Product not found"


class InvoiceNotFound(NotFound):
    default_message = "Invoice not found"

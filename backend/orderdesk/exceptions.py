"""Custom exception hierarchy for OrderDesk."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Lookup errors
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    SUBFOLDER_NOT_FOUND = "SUBFOLDER_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    CLAIM_NOT_FOUND = "CLAIM_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ROLE_NOT_FOUND = "ROLE_NOT_FOUND"

    # Claim errors
    FILE_NOT_IN_BATCH = "FILE_NOT_IN_BATCH"

    # State errors
    INVALID_ORDER_STATE = "INVALID_ORDER_STATE"
    PROTECTED_RESOURCE = "PROTECTED_RESOURCE"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Concurrency errors
    CONFLICT = "CONFLICT"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class OrderDeskException(Exception):
    """
    Base exception for all OrderDesk errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class _NotFoundError(OrderDeskException):
    """Shared shape of every 404: ``<Resource> not found: <id>``."""

    resource: str = "Resource"
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    id_field: str = "id"

    def __init__(self, entity_id):
        super().__init__(
            f"{self.resource} not found: {entity_id}",
            self.code,
            status_code=404,
            details={self.id_field: entity_id}
        )


class OrderNotFoundError(_NotFoundError):
    """Order not found in database."""
    resource = "Order"
    code = ErrorCode.ORDER_NOT_FOUND
    id_field = "order_id"


class FolderNotFoundError(_NotFoundError):
    """Folder not found in database."""
    resource = "Folder"
    code = ErrorCode.FOLDER_NOT_FOUND
    id_field = "folder_id"


class SubfolderNotFoundError(_NotFoundError):
    """Subfolder not found in database."""
    resource = "Subfolder"
    code = ErrorCode.SUBFOLDER_NOT_FOUND
    id_field = "subfolder_id"


class FileItemNotFoundError(_NotFoundError):
    """File item not found in database."""
    resource = "File"
    code = ErrorCode.FILE_NOT_FOUND
    id_field = "file_id"


class ClaimNotFoundError(_NotFoundError):
    """File claim not found in database."""
    resource = "Claim"
    code = ErrorCode.CLAIM_NOT_FOUND
    id_field = "claim_id"


class UserNotFoundError(_NotFoundError):
    """User not found in database."""
    resource = "User"
    code = ErrorCode.USER_NOT_FOUND
    id_field = "user_id"


class RoleNotFoundError(_NotFoundError):
    """Role not found in database."""
    resource = "Role"
    code = ErrorCode.ROLE_NOT_FOUND
    id_field = "role_id"


class FileNotInBatchError(OrderDeskException):
    """A file was addressed through a claim that does not contain it.

    This is a usage error, distinct from the file not existing at all.
    """

    def __init__(self, claim_id: int, file_id: int):
        super().__init__(
            "File is not part of the specified batch",
            ErrorCode.FILE_NOT_IN_BATCH,
            status_code=422,
            details={"claim_id": claim_id, "file_id": file_id}
        )


class OrderStateError(OrderDeskException):
    """Requested order transition is not allowed from the current state."""

    def __init__(self, order_id: int, current_status: str, message: str):
        super().__init__(
            message,
            ErrorCode.INVALID_ORDER_STATE,
            status_code=409,
            details={"order_id": order_id, "status": current_status}
        )


class ProtectedResourceError(OrderDeskException):
    """Built-in resource (e.g. the Admin role) cannot be modified."""

    def __init__(self, message: str):
        super().__init__(
            message,
            ErrorCode.PROTECTED_RESOURCE,
            status_code=403,
        )


class ValidationError(OrderDeskException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(OrderDeskException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(OrderDeskException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class ConflictError(OrderDeskException):
    """Operation conflicts with existing or concurrently modified state."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details
        )


class DatabaseError(OrderDeskException):
    """Database operation failed.

    The underlying driver error is kept on ``original_error`` for logging
    and is never sent to the client.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
        )
        self.original_error = original_error

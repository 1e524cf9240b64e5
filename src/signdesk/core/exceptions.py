"""Exception hierarchy for SignDesk.

Every domain error carries a machine-readable code, the HTTP status the
API layer should answer with, a user-facing message and optional
details. Quota admission errors are terminal client errors: callers must
not retry them.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes for API responses."""

    # General errors (1xxx)
    INTERNAL_ERROR = "SD1000"
    UNKNOWN_ERROR = "SD1001"
    CONFIGURATION_ERROR = "SD1002"

    # Authentication errors (2xxx)
    AUTHENTICATION_REQUIRED = "SD2000"
    INVALID_CREDENTIALS = "SD2001"
    TOKEN_INVALID = "SD2002"

    # Authorization errors (3xxx)
    PERMISSION_DENIED = "SD3000"
    RESOURCE_ACCESS_DENIED = "SD3001"

    # Validation errors (4xxx)
    VALIDATION_ERROR = "SD4000"
    INVALID_INPUT = "SD4001"
    INVALID_TIER = "SD4002"

    # Resource errors (5xxx)
    RESOURCE_NOT_FOUND = "SD5000"
    ACCOUNT_NOT_FOUND = "SD5001"
    DOCUMENT_NOT_FOUND = "SD5002"
    SIGNER_NOT_FOUND = "SD5003"
    AGREEMENT_NOT_FOUND = "SD5004"
    USER_NOT_FOUND = "SD5005"

    # Database errors (6xxx)
    DATABASE_ERROR = "SD6000"
    INTEGRITY_ERROR = "SD6001"

    # External provider errors (7xxx)
    EXTERNAL_API_ERROR = "SD7000"
    PAYMENT_PROVIDER_ERROR = "SD7001"
    STORAGE_PROVIDER_ERROR = "SD7002"
    PAYMENT_NOT_COMPLETED = "SD7003"

    # Quota / mode admission errors (8xxx)
    QUOTA_POLICY_ERROR = "SD8000"
    TIER_INELIGIBLE = "SD8001"
    QUOTA_EXHAUSTED = "SD8002"
    LEDGER_INCONSISTENCY = "SD8003"


class SignDeskException(Exception):
    """Base exception for all SignDesk errors.

    Attributes:
        message: Human-readable error message (logged).
        error_code: Machine-readable error code.
        http_status: HTTP status code for API responses.
        details: Additional context for debugging.
        user_message: Message shown to end users.
    """

    message: str = "An unexpected error occurred"
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    http_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    user_message: str | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: ErrorCode | None = None,
        http_status: HTTPStatus | None = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.error_code = error_code or self.__class__.error_code
        self.http_status = http_status or self.__class__.http_status
        self.details = details or {}
        self.user_message = user_message or self.__class__.user_message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.user_message,
                "details": self.details if self.details else None,
            }
        }

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code.value}, "
            f"http_status={self.http_status.value}, "
            f"details={self.details!r}"
            f")"
        )


# ============================================================================
# Authentication / Authorization
# ============================================================================


class AuthenticationError(SignDeskException):
    """Authentication-related errors."""

    message = "Authentication required"
    error_code = ErrorCode.AUTHENTICATION_REQUIRED
    http_status = HTTPStatus.UNAUTHORIZED


class InvalidCredentialsError(AuthenticationError):
    """Invalid email or password."""

    message = "Invalid email or password"
    error_code = ErrorCode.INVALID_CREDENTIALS


class AuthorizationError(SignDeskException):
    """Authorization-related errors."""

    message = "Permission denied"
    error_code = ErrorCode.PERMISSION_DENIED
    http_status = HTTPStatus.FORBIDDEN


class ResourceAccessDeniedError(AuthorizationError):
    """The resource belongs to another account."""

    message = "You don't have permission to access this resource"
    error_code = ErrorCode.RESOURCE_ACCESS_DENIED


# ============================================================================
# Validation
# ============================================================================


class ValidationError(SignDeskException):
    """Validation-related errors."""

    message = "Validation error"
    error_code = ErrorCode.VALIDATION_ERROR
    http_status = HTTPStatus.BAD_REQUEST

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details=details, **kwargs)


class InvalidTierError(ValidationError):
    """Requested subscription tier cannot be purchased."""

    message = "Invalid subscription tier"
    error_code = ErrorCode.INVALID_TIER


# ============================================================================
# Resources
# ============================================================================


class NotFoundError(SignDeskException):
    """Resource not found errors."""

    message = "Resource not found"
    error_code = ErrorCode.RESOURCE_NOT_FOUND
    http_status = HTTPStatus.NOT_FOUND

    def __init__(
        self,
        message: str | None = None,
        *,
        resource_type: str | None = None,
        resource_id: Any = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id is not None:
            details["resource_id"] = str(resource_id)

        if not message and resource_type:
            message = f"{resource_type} not found"

        super().__init__(message, details=details, **kwargs)


class DocumentNotFoundError(NotFoundError):
    message = "Document not found"
    error_code = ErrorCode.DOCUMENT_NOT_FOUND


class SignerNotFoundError(NotFoundError):
    message = "Signer not found"
    error_code = ErrorCode.SIGNER_NOT_FOUND


class AgreementNotFoundError(NotFoundError):
    message = "Agreement not found"
    error_code = ErrorCode.AGREEMENT_NOT_FOUND


class UserNotFoundError(NotFoundError):
    message = "User not found"
    error_code = ErrorCode.USER_NOT_FOUND


# ============================================================================
# Database
# ============================================================================


class DatabaseError(SignDeskException):
    """Database-related errors."""

    message = "Database error"
    error_code = ErrorCode.DATABASE_ERROR
    user_message = "A database error occurred. Please try again later."


class IntegrityError(DatabaseError):
    """Database integrity constraint violated."""

    message = "Data integrity constraint violated"
    error_code = ErrorCode.INTEGRITY_ERROR
    http_status = HTTPStatus.CONFLICT


# ============================================================================
# External providers
# ============================================================================


class ExternalAPIError(SignDeskException):
    """External provider errors."""

    message = "External API error"
    error_code = ErrorCode.EXTERNAL_API_ERROR
    http_status = HTTPStatus.BAD_GATEWAY
    user_message = "An external service is temporarily unavailable"

    def __init__(
        self,
        message: str,
        source: str,
        *,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        self.source = source
        self.api_status_code = status_code

        details = kwargs.pop("details", {}) or {}
        details["source"] = source
        if status_code:
            details["api_status_code"] = status_code

        super().__init__(message, details=details, **kwargs)


class PaymentProviderError(ExternalAPIError):
    """Payment processor call failed."""

    error_code = ErrorCode.PAYMENT_PROVIDER_ERROR

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("source", "payments")
        super().__init__(message, **kwargs)


class PaymentNotCompletedError(PaymentProviderError):
    """Payment intent exists but has not succeeded."""

    error_code = ErrorCode.PAYMENT_NOT_COMPLETED
    http_status = HTTPStatus.PAYMENT_REQUIRED
    user_message = "Payment has not been completed"


class StorageProviderError(ExternalAPIError):
    """Blob storage call failed."""

    error_code = ErrorCode.STORAGE_PROVIDER_ERROR

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("source", "blob_storage")
        super().__init__(message, **kwargs)


# ============================================================================
# Quota / mode admission
# ============================================================================


class QuotaPolicyError(SignDeskException):
    """Base class for LIVE-mode admission failures."""

    message = "LIVE mode is not available"
    error_code = ErrorCode.QUOTA_POLICY_ERROR
    http_status = HTTPStatus.FORBIDDEN

    def __init__(
        self,
        message: str | None = None,
        *,
        account_id: Any = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if account_id is not None:
            details["account_id"] = str(account_id)
        super().__init__(message, details=details, **kwargs)


class TierIneligibleError(QuotaPolicyError):
    """Free tier accounts cannot run LIVE actions."""

    message = "Account tier does not include LIVE mode"
    error_code = ErrorCode.TIER_INELIGIBLE
    user_message = "upgrade required"


class QuotaExhaustedError(QuotaPolicyError):
    """Paid account has used its LIVE quota for the billing cycle."""

    message = "LIVE quota exhausted"
    error_code = ErrorCode.QUOTA_EXHAUSTED
    user_message = "quota exceeded for this billing cycle"


class AccountNotFoundError(NotFoundError):
    """The account referenced by the caller no longer exists."""

    message = "Account not found"
    error_code = ErrorCode.ACCOUNT_NOT_FOUND
    user_message = "account not found"


class LedgerInconsistencyError(SignDeskException):
    """A LIVE effect completed but its quota consumption could not be recorded.

    Never shown to users; logged for out-of-band reconciliation.
    """

    message = "LIVE effect succeeded but quota consumption failed"
    error_code = ErrorCode.LEDGER_INCONSISTENCY


def get_http_status_for_exception(exc: Exception) -> HTTPStatus:
    """Get the appropriate HTTP status code for an exception."""
    if isinstance(exc, SignDeskException):
        return exc.http_status

    exception_status_map: dict[type, HTTPStatus] = {
        ValueError: HTTPStatus.BAD_REQUEST,
        PermissionError: HTTPStatus.FORBIDDEN,
        TimeoutError: HTTPStatus.GATEWAY_TIMEOUT,
    }

    for exc_type, status in exception_status_map.items():
        if isinstance(exc, exc_type):
            return status

    return HTTPStatus.INTERNAL_SERVER_ERROR

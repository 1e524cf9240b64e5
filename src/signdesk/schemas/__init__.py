"""Pydantic schemas for API requests and responses."""

from signdesk.schemas.auth import (
    PasswordChange,
    RefreshTokenRequest,
    TokenResponse,
    UserRegister,
    UserResponse,
)
from signdesk.schemas.base import (
    ErrorDetail,
    ErrorResponse,
    MessageResponse,
    PaginationInfo,
)
from signdesk.schemas.users import UserProfileUpdate

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    "PaginationInfo",
    "PasswordChange",
    "RefreshTokenRequest",
    "TokenResponse",
    "UserProfileUpdate",
    "UserRegister",
    "UserResponse",
]

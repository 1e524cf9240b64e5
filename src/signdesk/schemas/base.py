"""Shared response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Detailed error information."""

    model_config = ConfigDict(extra="forbid")

    code: str = Field(
        ...,
        description="Machine-readable error code (e.g., SD8002)",
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error context",
    )


class ErrorResponse(BaseModel):
    """Standardized error response schema."""

    model_config = ConfigDict(extra="forbid")

    success: bool = False
    error: ErrorDetail
    correlation_id: str | None = None


class MessageResponse(BaseModel):
    """Response for operations that only report an outcome."""

    success: bool = True
    message: str


class PaginationInfo(BaseModel):
    """Pagination information for list responses."""

    model_config = ConfigDict(extra="forbid")

    total: int = Field(
        ...,
        ge=0,
        description="Total number of items available",
    )
    page: int = Field(
        default=1,
        ge=1,
        description="Current page number (1-indexed)",
    )
    page_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of items per page",
    )
    total_pages: int = Field(
        default=1,
        ge=1,
        description="Total number of pages",
    )
    has_next: bool = False
    has_previous: bool = False

    @classmethod
    def calculate(
        cls,
        total: int,
        page: int = 1,
        page_size: int = 10,
    ) -> PaginationInfo:
        """Calculate pagination info from total and current page.

        Args:
            total: Total number of items.
            page: Current page number (1-indexed).
            page_size: Items per page.

        Returns:
            Calculated pagination info.
        """
        total_pages = max(1, (total + page_size - 1) // page_size)

        return cls(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        )

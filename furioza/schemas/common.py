"""
Common schema types used across the API.
"""

from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


def enum_value(value: Any) -> Any:
    """Plain value of an enum member (SQLite may hand back either form)."""
    return value.value if isinstance(value, Enum) else value


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: Optional[str] = None
    field: Optional[str] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Offset-paginated list response."""

    items: List[T]
    total: int
    limit: int
    offset: int = 0
    has_more: bool = False

    @classmethod
    def create(
        cls,
        items: List[T],
        total: int,
        limit: int,
        offset: int = 0,
    ) -> "PaginatedResponse[T]":
        return cls(
            items=items,
            total=total,
            limit=limit,
            offset=offset,
            has_more=(offset + len(items)) < total,
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    database: str = "connected"

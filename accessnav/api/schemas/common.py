"""Common schemas for the AccessNav API."""

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper."""
    items: List[T]
    total: int
    page: int
    per_page: int
    pages: int

    @classmethod
    def create(cls, items: List[T], total: int, page: int, per_page: int):
        pages = (total + per_page - 1) // per_page if per_page > 0 else 0
        return cls(items=items, total=total, page=page, per_page=per_page, pages=pages)


class ErrorDetail(BaseModel):
    """The ``error`` member of an error response."""
    type: str
    code: str
    required_permission: Optional[str] = None
    required_permissions: Optional[List[str]] = None
    required_roles: Optional[List[str]] = None


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    message: str
    error: ErrorDetail


def ok(message: str, data: Any = None) -> dict:
    """Build a success envelope for a handler to return."""
    return {"success": True, "message": message, "data": data}

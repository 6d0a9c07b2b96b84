"""Response envelope schema."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """``{success, message, data}`` envelope returned by every endpoint."""

    success: bool = Field(default=True, description="Whether the operation succeeded")
    message: str = Field(default="ok", description="Human readable outcome")
    data: DataT | None = Field(default=None, description="Operation payload")


class Pagination(BaseModel):
    """Pagination metadata for list endpoints."""

    current_page: int
    total_pages: int
    total_reports: int
    has_next: bool
    has_prev: bool

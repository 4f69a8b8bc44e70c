# app/schemas/common.py
"""Response envelope shared by every staff-facing endpoint: {success, message, data}."""

from pydantic import BaseModel
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


def paginate(total: int, page: int, limit: int) -> Pagination:
    return Pagination(total=total, page=page, limit=limit, total_pages=-(-total // limit) if limit else 0)

from math import ceil
from typing import Generic, List, NamedTuple, Optional, TypeVar

from pydantic import BaseModel, Field

from rental_api.core.config import settings

T = TypeVar("T")

class Pagination(BaseModel):
    """Pagination block attached to list responses."""
    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrevious: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            totalPages=total_pages,
            hasNext=page < total_pages,
            hasPrevious=page > 1,
        )


class Envelope(BaseModel, Generic[T]):
    """Standard ``{success, data, message}`` response wrapper."""
    success: bool = True
    data: Optional[T] = None
    message: str = "Success"
    pagination: Optional[Pagination] = None


class Page(NamedTuple):
    """One page of ORM rows returned by a service list query."""
    items: list
    total: int
    page: int
    limit: int

    @property
    def pagination(self) -> Pagination:
        return Pagination.build(self.page, self.limit, self.total)


class PageParams(BaseModel):
    """Query parameters shared by every list endpoint."""
    page: int = Field(1, ge=1)
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
    sort_by: str = "created_at"
    sort_order: str = Field("desc", pattern="^(asc|desc)$")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def paginated(items: List, page: Page, message: str) -> Envelope:
    return Envelope(data=items, message=message, pagination=page.pagination)

from fastapi import Query

from rental_api.core.config import settings
from rental_api.schemas.common import PageParams


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
) -> PageParams:
    """Pagination and sorting query parameters shared by list endpoints."""
    return PageParams(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

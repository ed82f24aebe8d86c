"""
Shared query parameters for list endpoints.
"""
from fastapi import Query

from asset_guardian.core.config import settings


class Pagination:
    """skip / limit query parameters bounded by the configured page sizes."""

    def __init__(
            self,
            skip: int = Query(0, ge=0),
            limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)
    ):
        self.skip = skip
        self.limit = limit

"""
Pagination Utility - page/limit query parameters and page metadata.

Pages are 1-indexed. totalPages = ceil(total / limit).
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from fastapi import Query
from pymongo.collection import Collection

from app.core.config import get_settings

settings = get_settings()


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    limit: int = 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> dict:
        """Page metadata in response field names (snake_case, aliased on the wire)."""
        return {
            "total": total,
            "total_pages": math.ceil(total / self.limit) if self.limit else 0,
            "current_page": self.page,
        }

    def has_next(self, total: int) -> bool:
        return self.page * self.limit < total

    def has_prev(self) -> bool:
        return self.page > 1


def get_pagination(
    page: int = Query(1, ge=1, description="1-indexed page number"),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
) -> Pagination:
    """FastAPI dependency: read ?page=&limit= from the query string."""
    return Pagination(page=page, limit=limit)


def paginate(
    collection: Collection,
    query: dict,
    pagination: Pagination,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
    projection: Optional[dict] = None,
) -> Tuple[List[dict], int]:
    """Run one page of `query` and count the full match set."""
    cursor = collection.find(query, projection)
    if sort:
        cursor = cursor.sort(list(sort))
    docs = list(cursor.skip(pagination.skip).limit(pagination.limit))
    total = collection.count_documents(query)
    return docs, total


def split_csv(value: Optional[str]) -> List[str]:
    """'Go, SQL,,Python' -> ['Go', 'SQL', 'Python']"""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]

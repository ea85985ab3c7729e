# socialnet/schemas/common.py
from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

from socialnet.services.pagination import Pagination

T = TypeVar("T")

RFC3339 = "%Y-%m-%dT%H:%M:%SZ"


def rfc3339(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    # naive values are stored UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(RFC3339)


class Page(BaseModel, Generic[T]):
    items: List[T]
    total_count: int
    page: int
    total_pages: int

    @classmethod
    def build(cls, items: List[T], count: int, pg: Pagination) -> "Page[T]":
        return cls(items=items, total_count=count, page=pg.page, total_pages=pg.total_pages(count))


class SuccessResponse(BaseModel):
    success: bool = True
    message: str = ""

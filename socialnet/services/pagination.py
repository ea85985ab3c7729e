# socialnet/services/pagination.py
import math
from dataclasses import dataclass
from typing import Optional

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @classmethod
    def from_request(cls, page: Optional[int], limit: Optional[int]) -> "Pagination":
        """
        Clamp client input instead of rejecting it: page < 1 becomes 1 and a
        limit outside [1, MAX_LIMIT] becomes DEFAULT_LIMIT.
        """
        if page is None or page < 1:
            page = DEFAULT_PAGE
        if limit is None or limit < 1 or limit > MAX_LIMIT:
            limit = DEFAULT_LIMIT
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, count: int) -> int:
        if count <= 0:
            return 0
        return math.ceil(count / self.limit)


def lenient_int(value: Optional[str]) -> int:
    """Parse a query value, reading anything unparsable as 0 so clamping applies."""
    if value is None:
        return 0
    try:
        return int(value.strip())
    except ValueError:
        return 0

from dataclasses import dataclass
from typing import Optional

from socialnet.services.pagination import lenient_int


@dataclass
class PageParams:
    page: int
    limit: int


def get_page_params(page: Optional[str] = None, limit: Optional[str] = None) -> PageParams:
    """
    Query strings are taken raw so that ?page=x degrades to the first page
    instead of a 422.
    """
    return PageParams(page=lenient_int(page), limit=lenient_int(limit))

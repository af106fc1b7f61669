"""
Page-number pagination shared by every listing operation.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, TypeVar

from mingle.errors import InvalidArgument
from mingle.utils.serialization import json_compat

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    def __post_init__(self):
        if self.page is None or int(self.page) < 1:
            raise InvalidArgument("page must be >= 1")
        if self.limit is None or int(self.limit) < 1 or int(self.limit) > MAX_LIMIT:
            raise InvalidArgument(f"limit must be between 1 and {MAX_LIMIT}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    limit: int
    total: int
    pages: int = field(init=False)

    def __post_init__(self):
        self.pages = int(math.ceil(self.total / self.limit)) if self.limit else 0

    @classmethod
    def of(cls, items: List[T], request: PageRequest, total: int) -> "Page[T]":
        return cls(items=list(items), page=request.page, limit=request.limit, total=int(total))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [json_compat(item) for item in self.items],
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "pages": self.pages,
            },
        }

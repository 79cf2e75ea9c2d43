import math
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from pydantic.alias_generators import to_snake

from ..exceptions import ValidationFailed

T = TypeVar("T")


def parse_sort(sort: Optional[str]) -> Tuple[Optional[str], bool]:
    """'-date' -> ('date', True); 'createdAt' -> ('created_at', False)"""
    if not sort:
        return None, False
    sort = sort.strip()
    descending = sort.startswith("-")
    name = sort.lstrip("+-").strip()
    if not name:
        return None, False
    return to_snake(name), descending


@dataclass(frozen=True)
class Range:
    """Inclusive bounds filter; either side may be open."""
    gte: Any = None
    lte: Any = None


@dataclass(frozen=True)
class Contains:
    """Membership filter for JSON list columns."""
    value: Any


@dataclass(frozen=True)
class QueryOptions:
    page: int = 1
    limit: int = 10
    sort_field: Optional[str] = None
    descending: bool = False
    search: Optional[str] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def build(
        cls,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort: Optional[str] = None,
        search: Optional[str] = None,
        default_limit: int = 10,
        max_limit: int = 100,
    ) -> "QueryOptions":
        try:
            page = int(page) if page is not None else 1
            limit = int(limit) if limit is not None else default_limit
        except (TypeError, ValueError):
            raise ValidationFailed("page and limit must be integers")
        if page < 1:
            raise ValidationFailed("page must be 1 or greater")
        if limit < 1:
            raise ValidationFailed("limit must be 1 or greater")
        sort_field, descending = parse_sort(sort)
        search = search.strip() if search else None
        return cls(
            page=page,
            limit=min(limit, max_limit),
            sort_field=sort_field,
            descending=descending,
            search=search or None,
        )


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def page_info(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


@dataclass
class Caller:
    """Authenticated identity attached to a request."""
    id: str
    role: str
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

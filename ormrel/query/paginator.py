"""Offset/limit paginator returned by ``paginate``."""

from __future__ import annotations

import math
from typing import Any, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, Field


class SimplePaginator(BaseModel):
    """One page of rows plus the total row count of the query."""

    model_config = {"arbitrary_types_allowed": True}

    rows: list[Any]
    total: int
    per_page: int
    current_page: int
    base_url: str = "/"
    query_string: dict[str, Any] = Field(default_factory=dict)

    def __iter__(self):
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def all(self) -> list[Any]:
        return self.rows

    @property
    def first_page(self) -> int:
        return 1

    @property
    def last_page(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1) if self.per_page else 1

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def has_pages(self) -> bool:
        return self.last_page != 1

    @property
    def has_more_pages(self) -> bool:
        return self.current_page < self.last_page

    def with_query_string(self, **values: Any) -> SimplePaginator:
        """Extra query string parameters kept in every page URL."""
        return self.model_copy(update={"query_string": {**self.query_string, **values}})

    def get_url(self, page: int) -> str:
        page = max(page, 1)
        return f"{self.base_url}?{urlencode({**self.query_string, 'page': page})}"

    def get_next_page_url(self) -> Optional[str]:
        if self.has_more_pages:
            return self.get_url(self.current_page + 1)
        return None

    def get_previous_page_url(self) -> Optional[str]:
        if self.current_page > 1:
            return self.get_url(self.current_page - 1)
        return None

    def get_urls_for_range(self, start: int, end: int) -> list[dict[str, Any]]:
        return [{"url": self.get_url(page), "page": page} for page in range(start, end + 1)]

    def meta(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "per_page": self.per_page,
            "current_page": self.current_page,
            "last_page": self.last_page,
            "first_page": self.first_page,
            "first_page_url": self.get_url(1),
            "last_page_url": self.get_url(self.last_page),
            "next_page_url": self.get_next_page_url(),
            "previous_page_url": self.get_previous_page_url(),
        }

    def to_dict(self) -> dict[str, Any]:
        return {"meta": self.meta(), "data": [getattr(row, "to_dict", lambda: row)() for row in self.rows]}

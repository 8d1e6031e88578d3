"""
Filter and page state for list views.

PageState is immutable; every transition returns a new state and none of them
raise. Filter values of None, blank strings and the "all" sentinel mean
"no restriction" and are dropped during normalization.
"""

import math
from typing import Any, Dict, Optional, Tuple
from flask import current_app, has_app_context
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
ALL_SENTINEL = "all"


def total_pages(count: int, page_size: int) -> int:
    if count <= 0 or page_size <= 0:
        return 0
    return math.ceil(count / page_size)


def page_size_limits() -> Tuple[int, int]:
    """
    Default and maximum page size from the app config.
    Falls back to the module defaults outside an application context.
    """
    if has_app_context():
        return (
            current_app.config.get('DEFAULT_PAGE_SIZE', DEFAULT_PAGE_SIZE),
            current_app.config.get('MAX_PAGE_SIZE', MAX_PAGE_SIZE),
        )
    return DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def clamp_page(page, page_size, max_page_size: Optional[int] = None) -> Tuple[int, int]:
    """Coerce raw page/page_size values into the accepted range."""
    default_size, configured_max = page_size_limits()
    if max_page_size is None:
        max_page_size = configured_max
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = int(page_size)
    except (TypeError, ValueError):
        page_size = default_size
    page = max(1, page)
    page_size = min(max(1, page_size), max_page_size)
    return page, page_size


def normalize_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    normalized = {}
    for key, value in (filters or {}).items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if value == "" or value.lower() == ALL_SENTINEL:
                continue
        normalized[key] = value
    return normalized


class QueryDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    filters: Dict[str, Any] = Field(default_factory=dict)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: Optional[str] = None
    sort_desc: Optional[bool] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def window(self) -> Tuple[int, int]:
        """Inclusive row range for the current page."""
        return self.offset, self.page * self.page_size - 1


class PageState(BaseModel):
    model_config = ConfigDict(frozen=True)

    filters: Dict[str, Any] = Field(default_factory=dict)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    count: int = 0
    total_pages: int = 0

    def with_filters(self, partial: Dict[str, Any]) -> "PageState":
        merged = dict(self.filters)
        for key, value in (partial or {}).items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        return self.model_copy(update={'filters': normalize_filters(merged), 'page': 1})

    def cleared(self) -> "PageState":
        return self.model_copy(update={'filters': {}, 'page': 1})

    def next_page(self) -> "PageState":
        if self.page >= self.total_pages:
            return self
        return self.model_copy(update={'page': self.page + 1})

    def previous_page(self) -> "PageState":
        if self.page <= 1:
            return self
        return self.model_copy(update={'page': self.page - 1})

    def go_to_page(self, page: int) -> "PageState":
        if not isinstance(page, int) or page < 1 or page > self.total_pages:
            return self
        return self.model_copy(update={'page': page})

    def with_count(self, count: int) -> "PageState":
        count = max(0, int(count or 0))
        return self.model_copy(update={
            'count': count,
            'total_pages': total_pages(count, self.page_size),
        })

    def descriptor(self, sort_by=None, sort_desc=None) -> QueryDescriptor:
        return QueryDescriptor(
            filters=dict(self.filters),
            page=self.page,
            page_size=self.page_size,
            sort_by=sort_by,
            sort_desc=sort_desc,
        )


def make_descriptor(filters=None, page=1, page_size=None, sort_by=None, sort_desc=None) -> QueryDescriptor:
    page, page_size = clamp_page(page, page_size)
    return QueryDescriptor(
        filters=normalize_filters(filters),
        page=page,
        page_size=page_size,
        sort_by=sort_by or None,
        sort_desc=sort_desc,
    )

"""
Translation of list queries into SQLAlchemy.

A Listing describes how one entity is searched, filtered and ordered; the
QueryTranslator applies a QueryDescriptor to it against an injected session.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from marshmallow import ValidationError
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from transport_backend.extensions import db
from transport_backend.services.errors import ServiceError
from transport_backend.services.view_models import PageResult
from transport_backend.utils.pagination import QueryDescriptor, normalize_filters, total_pages

SEARCH_KEY = 'search'


@dataclass
class Listing:
    model: Any
    label: str
    search_columns: List[Any] = field(default_factory=list)
    equality_filters: Dict[str, Any] = field(default_factory=dict)
    # filter key -> (column, '>=' | '<=')
    range_filters: Dict[str, Tuple[Any, str]] = field(default_factory=dict)
    # filter key -> callable(value) returning a SQL predicate
    custom_filters: Dict[str, Callable[[Any], Any]] = field(default_factory=dict)
    sortable: Dict[str, Any] = field(default_factory=dict)
    # (column, descending) pairs
    default_order: List[Tuple[Any, bool]] = field(default_factory=list)
    load_options: List[Any] = field(default_factory=list)

    @property
    def filter_keys(self):
        keys = set(self.equality_filters) | set(self.range_filters) | set(self.custom_filters)
        if self.search_columns:
            keys.add(SEARCH_KEY)
        return keys


def escape_like(term: str) -> str:
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class QueryTranslator:
    def __init__(self, session=None):
        self.session = session or db.session

    def predicates(self, listing: Listing, filters: Dict[str, Any]) -> list:
        filters = normalize_filters(filters)
        unknown = set(filters) - listing.filter_keys
        if unknown:
            raise ValidationError({key: ['Unknown filter.'] for key in sorted(unknown)})

        clauses = []
        term = filters.get(SEARCH_KEY)
        if term and listing.search_columns:
            pattern = f"%{escape_like(str(term))}%"
            clauses.append(or_(*[col.ilike(pattern, escape='\\') for col in listing.search_columns]))

        for key, column in listing.equality_filters.items():
            if key in filters:
                clauses.append(column == filters[key])

        for key, (column, op) in listing.range_filters.items():
            if key in filters:
                clauses.append(column >= filters[key] if op == '>=' else column <= filters[key])

        for key, build in listing.custom_filters.items():
            if key in filters:
                clauses.append(build(filters[key]))
        return clauses

    def ordering(self, listing: Listing, sort_by: Optional[str] = None, sort_desc: Optional[bool] = None) -> list:
        if sort_by:
            column = listing.sortable.get(sort_by)
            if column is None:
                raise ValidationError({'sort_by': [f"Cannot sort by '{sort_by}'."]})
            order = [column.desc() if sort_desc else column.asc()]
        else:
            order = [col.desc() if desc else col.asc() for col, desc in listing.default_order]
        # Stable windows across pages
        order.append(listing.model.id.asc())
        return order

    def filtered_query(self, listing: Listing, filters: Dict[str, Any]):
        return self.session.query(listing.model).filter(*self.predicates(listing, filters))

    def fetch_page(self, listing: Listing, descriptor: QueryDescriptor) -> PageResult:
        try:
            query = self.filtered_query(listing, descriptor.filters)
            order = self.ordering(listing, descriptor.sort_by, descriptor.sort_desc)
            count = query.count()
            items = (
                query.options(*listing.load_options)
                .order_by(*order)
                .offset(descriptor.offset)
                .limit(descriptor.page_size)
                .all()
            )
            return PageResult(
                items=items,
                count=count,
                page=descriptor.page,
                page_size=descriptor.page_size,
                total_pages=total_pages(count, descriptor.page_size),
            )
        except SQLAlchemyError as e:
            logging.error(f"Error fetching {listing.label}: {e}", exc_info=True)
            raise ServiceError(f"Could not fetch {listing.label}. Please try again later.")

    def fetch_all(self, listing: Listing, filters: Optional[Dict[str, Any]] = None, sort_by=None, sort_desc=None) -> list:
        """Every row matching the filters, unwindowed."""
        try:
            query = self.filtered_query(listing, filters or {})
            return query.options(*listing.load_options).order_by(*self.ordering(listing, sort_by, sort_desc)).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching {listing.label}: {e}", exc_info=True)
            raise ServiceError(f"Could not fetch {listing.label}. Please try again later.")

    def count(self, listing: Listing, filters: Optional[Dict[str, Any]] = None) -> int:
        try:
            return self.filtered_query(listing, filters or {}).count()
        except SQLAlchemyError as e:
            logging.error(f"Error counting {listing.label}: {e}", exc_info=True)
            raise ServiceError(f"Could not fetch {listing.label}. Please try again later.")

"""
View-state controllers for entity lists.

A controller owns one PageState and the rows of the current window. Every
fetch takes a generation token; a completion carrying anything but the latest
token is dropped, so a slow stale response can never overwrite fresher state.
Errors are caught here, stored on the controller and the rows are emptied.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from marshmallow import ValidationError

from transport_backend.services.driver_service import DriverService
from transport_backend.services.errors import ServiceError
from transport_backend.services.mission_service import MissionService
from transport_backend.services.subcontractor_service import SubcontractorService
from transport_backend.services.trip_service import TripService
from transport_backend.services.vehicle_service import VehicleService
from transport_backend.services.view_models import PageResult
from transport_backend.utils.pagination import PageState, clamp_page, make_descriptor

logger = logging.getLogger(__name__)

Fetcher = Callable[..., PageResult]


class ListController:
    def __init__(self, fetcher: Fetcher, page_size: Optional[int] = None, filters: Optional[Dict[str, Any]] = None,
                 sort_by: Optional[str] = None, sort_desc: Optional[bool] = None):
        self._fetcher = fetcher
        # Clamped once so total_pages and the fetched window share one page size
        _, page_size = clamp_page(1, page_size)
        self._state = PageState(page_size=page_size).with_filters(filters or {})
        self.sort_by = sort_by
        self.sort_desc = sort_desc
        self._generation = 0
        self.items: List[Any] = []
        self.loading = False
        self.error: Optional[str] = None

    # State exposed to consumers

    @property
    def state(self) -> PageState:
        return self._state

    @property
    def filters(self) -> Dict[str, Any]:
        return dict(self._state.filters)

    @property
    def page(self) -> int:
        return self._state.page

    @property
    def page_size(self) -> int:
        return self._state.page_size

    @property
    def count(self) -> int:
        return self._state.count

    @property
    def total_pages(self) -> int:
        return self._state.total_pages

    @property
    def generation(self) -> int:
        return self._generation

    # Fetch lifecycle

    def start_fetch(self) -> int:
        self._generation += 1
        self.loading = True
        return self._generation

    def complete_fetch(self, token: int, result: PageResult) -> bool:
        if token != self._generation:
            logger.debug(f"Dropping stale list result (token {token}, latest {self._generation})")
            return False
        self.items = list(result.items)
        self._state = self._state.with_count(result.count)
        self.error = None
        self.loading = False
        return True

    def fail_fetch(self, token: int, error: Exception) -> bool:
        if token != self._generation:
            return False
        self.error = getattr(error, 'message', None) or str(error)
        self.items = []
        self._state = self._state.with_count(0)
        self.loading = False
        return True

    def fetch(self, token: int) -> bool:
        descriptor = make_descriptor(
            self._state.filters, self._state.page, self._state.page_size, self.sort_by, self.sort_desc
        )
        try:
            result = self._fetcher(
                filters=descriptor.filters,
                page=descriptor.page,
                page_size=descriptor.page_size,
                sort_by=descriptor.sort_by,
                sort_desc=descriptor.sort_desc,
            )
        except (ServiceError, ValidationError) as e:
            logger.warning(f"List fetch failed: {e}")
            return self.fail_fetch(token, e)
        return self.complete_fetch(token, result)

    def refresh(self) -> bool:
        return self.fetch(self.start_fetch())

    # Transitions

    def _move_to(self, state: PageState) -> bool:
        if state == self._state:
            return False
        self._state = state
        self.refresh()
        return True

    def update_filters(self, partial: Dict[str, Any]) -> bool:
        return self._move_to(self._state.with_filters(partial))

    def clear_filters(self) -> bool:
        return self._move_to(self._state.cleared())

    def next_page(self) -> bool:
        return self._move_to(self._state.next_page())

    def previous_page(self) -> bool:
        return self._move_to(self._state.previous_page())

    def go_to_page(self, page: int) -> bool:
        return self._move_to(self._state.go_to_page(page))

    def sort(self, sort_by: Optional[str], sort_desc: Optional[bool] = None) -> bool:
        if (sort_by, sort_desc) == (self.sort_by, self.sort_desc):
            return False
        self.sort_by = sort_by
        self.sort_desc = sort_desc
        self.refresh()
        return True


class DriverListController(ListController):
    def __init__(self, session=None, **kwargs):
        super().__init__(DriverService(session).list, **kwargs)


class VehicleListController(ListController):
    def __init__(self, session=None, **kwargs):
        super().__init__(VehicleService(session).list, **kwargs)


class TripListController(ListController):
    def __init__(self, session=None, **kwargs):
        super().__init__(TripService(session).list, **kwargs)


class SubcontractorListController(ListController):
    def __init__(self, session=None, **kwargs):
        super().__init__(SubcontractorService(session).list, **kwargs)


class MissionListController(ListController):
    def __init__(self, session=None, **kwargs):
        super().__init__(MissionService(session).list, **kwargs)

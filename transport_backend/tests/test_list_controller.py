"""
Tests for list view-state controllers
"""
from transport_backend.controllers.list_controller import DriverListController, ListController
from transport_backend.services.errors import ServiceError
from transport_backend.services.view_models import PageResult
from transport_backend.tests.factories import create_drivers


class TestDriverListController:

    def test_walks_pages_and_stops_at_the_end(self, session):
        create_drivers(session, 45)
        controller = DriverListController(session)
        controller.refresh()
        assert controller.count == 45
        assert controller.total_pages == 3
        assert len(controller.items) == 20

        assert controller.next_page() is True
        assert controller.next_page() is True
        assert controller.page == 3
        assert len(controller.items) == 5

        generation = controller.generation
        assert controller.next_page() is False
        assert controller.page == 3
        assert controller.generation == generation

    def test_filter_change_returns_to_first_page(self, session):
        create_drivers(session, 30)
        create_drivers(session, 2, status='inactive')
        controller = DriverListController(session)
        controller.refresh()
        controller.next_page()
        assert controller.page == 2

        controller.update_filters({'status': 'inactive'})
        assert controller.page == 1
        assert controller.count == 2
        assert controller.filters == {'status': 'inactive'}

        controller.clear_filters()
        assert controller.filters == {}
        assert controller.count == 32

    def test_go_to_page_out_of_range(self, session):
        create_drivers(session, 45)
        controller = DriverListController(session)
        controller.refresh()
        assert controller.go_to_page(7) is False
        assert controller.page == 1
        assert controller.go_to_page(2) is True
        assert controller.page == 2
        assert controller.previous_page() is True
        assert controller.previous_page() is False

    def test_bad_filter_is_reported_not_raised(self, session):
        controller = DriverListController(session, filters={'colour': 'blue'})
        assert controller.refresh() is True
        assert controller.error is not None
        assert controller.items == []
        assert controller.count == 0

    def test_oversized_page_size_is_clamped(self, session):
        create_drivers(session, 250)
        controller = DriverListController(session, page_size=150)
        controller.refresh()
        assert controller.page_size == 100
        assert controller.total_pages == 3

        seen = len(controller.items)
        while controller.next_page():
            seen += len(controller.items)
        assert controller.page == 3
        assert seen == 250

    def test_zero_page_size_is_clamped(self, session):
        create_drivers(session, 45)
        controller = DriverListController(session, page_size=0)
        controller.refresh()
        assert controller.page_size == 1
        assert controller.total_pages == 45
        assert len(controller.items) == 1

    def test_unknown_sort_keeps_filters_and_page(self, session):
        create_drivers(session, 45)
        controller = DriverListController(session, filters={'status': 'active'})
        controller.refresh()
        controller.next_page()

        assert controller.sort('password') is True
        assert controller.error is not None
        assert controller.items == []
        assert controller.page == 2
        assert controller.filters == {'status': 'active'}

    def test_sort_by_known_column(self, session):
        create_drivers(session, 3)
        controller = DriverListController(session)
        controller.refresh()
        controller.sort('last_name', sort_desc=True)
        assert controller.error is None
        assert [d.last_name for d in controller.items] == ['Driver002', 'Driver001', 'Driver000']
        assert controller.sort('last_name', sort_desc=True) is False


class TestFetchGenerations:

    def test_stale_completion_is_discarded(self):
        controller = ListController(lambda **kwargs: PageResult())
        stale = controller.start_fetch()
        latest = controller.start_fetch()

        assert controller.complete_fetch(latest, PageResult(items=['fresh'], count=1)) is True
        assert controller.complete_fetch(stale, PageResult(items=['old', 'older'], count=2)) is False
        assert controller.items == ['fresh']
        assert controller.count == 1

    def test_stale_failure_is_discarded(self):
        controller = ListController(lambda **kwargs: PageResult())
        stale = controller.start_fetch()
        latest = controller.start_fetch()
        controller.complete_fetch(latest, PageResult(items=['fresh'], count=1))

        assert controller.fail_fetch(stale, ServiceError("boom")) is False
        assert controller.error is None
        assert controller.items == ['fresh']

    def test_failure_clears_rows(self):
        def failing(**kwargs):
            raise ServiceError("Could not fetch drivers. Please try again later.")

        controller = ListController(failing)
        token = controller.start_fetch()
        controller.complete_fetch(token, PageResult(items=['a'], count=1))

        assert controller.refresh() is True
        assert controller.items == []
        assert controller.count == 0
        assert controller.error == "Could not fetch drivers. Please try again later."
        assert controller.loading is False

"""
Tests for list filter and page state
"""
from transport_backend.utils.pagination import (
    PageState,
    clamp_page,
    make_descriptor,
    normalize_filters,
    total_pages,
)


class TestTotalPages:

    def test_zero_rows_means_zero_pages(self):
        assert total_pages(0, 20) == 0

    def test_partial_last_page_counts(self):
        assert total_pages(45, 20) == 3
        assert total_pages(40, 20) == 2
        assert total_pages(1, 20) == 1


class TestNormalizeFilters:

    def test_drops_empty_values_and_all_sentinel(self):
        filters = normalize_filters({
            'status': 'all',
            'search': '   ',
            'driver_id': None,
            'vehicle_id': 3,
            'fuel_type': ' diesel ',
        })
        assert filters == {'vehicle_id': 3, 'fuel_type': 'diesel'}

    def test_all_sentinel_is_case_insensitive(self):
        assert normalize_filters({'status': 'ALL'}) == {}

    def test_none_input(self):
        assert normalize_filters(None) == {}


class TestDescriptor:

    def test_window_is_inclusive(self):
        descriptor = make_descriptor({}, page=3, page_size=20)
        assert descriptor.offset == 40
        assert descriptor.window() == (40, 59)

    def test_first_page_window(self):
        assert make_descriptor(page=1, page_size=10).window() == (0, 9)

    def test_clamps_bad_input(self):
        descriptor = make_descriptor({'status': 'all'}, page=0, page_size=1000)
        assert descriptor.page == 1
        assert descriptor.page_size == 100
        assert descriptor.filters == {}

    def test_clamp_page_coerces_strings(self):
        assert clamp_page('2', 'abc') == (2, 20)


class TestPageState:

    def test_filter_change_resets_page(self):
        state = PageState(page=3, count=45, total_pages=3)
        updated = state.with_filters({'status': 'active'})
        assert updated.page == 1
        assert updated.filters == {'status': 'active'}
        assert state.page == 3

    def test_filter_merge_and_removal(self):
        state = PageState().with_filters({'status': 'active', 'search': 'kou'})
        state = state.with_filters({'search': None})
        assert state.filters == {'status': 'active'}
        state = state.with_filters({'status': 'all'})
        assert state.filters == {}

    def test_cleared(self):
        state = PageState(filters={'status': 'active'}, page=2, total_pages=3)
        cleared = state.cleared()
        assert cleared.filters == {}
        assert cleared.page == 1

    def test_next_page_stops_at_last_page(self):
        state = PageState().with_count(45)
        assert state.total_pages == 3
        state = state.next_page().next_page()
        assert state.page == 3
        assert state.next_page() is state

    def test_previous_page_stops_at_first_page(self):
        state = PageState().with_count(45)
        assert state.previous_page() is state
        assert state.next_page().previous_page().page == 1

    def test_go_to_page_out_of_range_is_ignored(self):
        state = PageState().with_count(45)
        assert state.go_to_page(4) is state
        assert state.go_to_page(0) is state
        assert state.go_to_page(2).page == 2

    def test_empty_result_has_no_pages(self):
        state = PageState().with_count(0)
        assert state.total_pages == 0
        assert state.next_page() is state

    def test_descriptor_reflects_state(self):
        state = PageState(page_size=10).with_filters({'status': 'active'}).with_count(25).go_to_page(3)
        descriptor = state.descriptor()
        assert descriptor.filters == {'status': 'active'}
        assert descriptor.window() == (20, 29)

"""
Tests for dashboard statistics
"""
from datetime import date

from transport_backend.services.stats_service import StatsService, default_period, previous_period
from transport_backend.tests.factories import Fleet, create_container_type


class TestPeriods:

    def test_default_period_is_thirty_days(self):
        date_from, date_to = default_period(date(2024, 3, 31))
        assert (date_from, date_to) == (date(2024, 3, 2), date(2024, 3, 31))

    def test_previous_period_has_same_length(self):
        assert previous_period(date(2024, 3, 11), date(2024, 3, 20)) == (date(2024, 3, 1), date(2024, 3, 10))


class TestStatsService:

    def test_dashboard_compares_with_previous_period(self, session):
        fleet = Fleet(session)
        fleet.trip(trip_date=date(2024, 3, 5), start_odometer=1000)
        fleet.trip(trip_date=date(2024, 3, 15), start_odometer=2000)
        fleet.trip(trip_date=date(2024, 3, 16), start_odometer=3000)

        stats = StatsService(session).dashboard(date(2024, 3, 11), date(2024, 3, 20))
        assert stats.total_trips == 2
        assert stats.trips_change == 100.0
        assert stats.consumption_trend == 'stable'

    def test_dashboard_on_empty_period(self, session):
        stats = StatsService(session).dashboard(date(2024, 3, 1), date(2024, 3, 31))
        assert stats.total_trips == 0
        assert stats.trips_change == 0
        assert stats.average_consumption == 0

    def test_container_distribution_weighted_by_quantity(self, session):
        fleet = Fleet(session)
        small = create_container_type(session, "20' Dry", 20)
        fleet.trip(trip_date=date(2024, 3, 5), containers=[
            {'container_type_id': small.id, 'quantity': 3},
            {'container_type_id': fleet.container_type.id, 'quantity': 1},
        ])
        entries = StatsService(session).container_distribution(date(2024, 3, 1), date(2024, 3, 31))
        assert [(e.key, e.count, e.percentage) for e in entries] == [
            ("20' Dry", 3, 75.0),
            ("40' Dry", 1, 25.0),
        ]

    def test_trips_series_with_and_without_fill(self, session):
        fleet = Fleet(session)
        fleet.trip(trip_date=date(2024, 3, 2), start_odometer=1000)
        fleet.trip(trip_date=date(2024, 3, 4), start_odometer=2000)
        service = StatsService(session)

        sparse = service.trips_series(date(2024, 3, 1), date(2024, 3, 5))
        assert [p.day for p in sparse] == [date(2024, 3, 2), date(2024, 3, 4)]

        filled = service.trips_series(date(2024, 3, 1), date(2024, 3, 5), fill=True)
        assert [p.value for p in filled] == [0, 1, 0, 1, 0]

    def test_costs_series(self, session):
        fleet = Fleet(session)
        trip = fleet.trip(trip_date=date(2024, 3, 2))
        series = StatsService(session).costs_series(date(2024, 3, 1), date(2024, 3, 5))
        assert series[0].value == trip.total_cost

    def test_consumption_ranking(self, session):
        fleet = Fleet(session)
        fleet.trip(trip_date=date(2024, 3, 2), distance=100, actual_fuel=30)
        fleet.trip(trip_date=date(2024, 3, 3), vehicle=fleet.other_vehicle, start_odometer=50000,
                   distance=100, actual_fuel=45)
        ranking = StatsService(session).consumption_ranking(date(2024, 3, 1), date(2024, 3, 31))
        assert [v.plate_number for v in ranking] == ['CD-5678-CI', 'AB-1234-CI']

"""
Tests for the alert feed: aggregates, AlertService and /api/alerts
"""
from datetime import date, datetime

import pytest

from transport_backend.services import aggregates
from transport_backend.services.alert_service import AlertService
from transport_backend.services.stats_service import StatsService
from transport_backend.tests.factories import Fleet, create_mission, create_subcontractor


def trip(trip_id, vehicle_id=1, trip_date=date(2024, 3, 1), **kwargs):
    row = {
        'id': trip_id,
        'vehicle_id': vehicle_id,
        'trip_date': trip_date,
        'vehicle': {'plate_number': f"PL-{vehicle_id}"},
        'driver': {'first_name': 'Yao', 'last_name': 'Kouame'},
    }
    row.update(kwargs)
    return row


def mission(mission_id, mission_date, balance_paid=False, status='ongoing', balance_amount=100):
    return {
        'id': mission_id,
        'mission_date': mission_date,
        'balance_paid': balance_paid,
        'balance_amount': balance_amount,
        'status': status,
        'subcontractor': {'company_name': 'Lagune Transit SARL'},
    }


class TestFuelVarianceAlerts:

    def test_only_variances_above_ten_liters(self):
        alerts = aggregates.fuel_variance_alerts([
            trip(1, fuel_variance=12, trip_date=date(2024, 3, 1)),
            trip(2, fuel_variance=-25, trip_date=date(2024, 3, 5)),
            trip(3, fuel_variance=10),
            trip(4, fuel_variance=None),
        ])
        assert [a.id for a in alerts] == ['fuel-variance-2', 'fuel-variance-1']
        assert [a.severity for a in alerts] == ['critical', 'warning']
        assert alerts[0].data['driver'] == 'Yao Kouame'
        assert alerts[0].data['vehicle'] == 'PL-1'

    def test_limit(self):
        rows = [trip(i, fuel_variance=15, trip_date=date(2024, 3, i)) for i in range(1, 8)]
        alerts = aggregates.fuel_variance_alerts(rows, limit=3)
        assert [a.data['trip_id'] for a in alerts] == [7, 6, 5]


class TestAbnormalConsumptionAlerts:

    def test_trip_above_vehicle_average(self):
        rows = [
            trip(1, consumption_per_100=30, trip_date=date(2024, 3, 1)),
            trip(2, consumption_per_100=30, trip_date=date(2024, 3, 2)),
            trip(3, consumption_per_100=30, trip_date=date(2024, 3, 3)),
            trip(4, consumption_per_100=50, trip_date=date(2024, 3, 4)),
        ]
        alerts = aggregates.abnormal_consumption_alerts(rows)
        assert len(alerts) == 1
        assert alerts[0].data['trip_id'] == 4
        assert alerts[0].data['average_consumption'] == 35
        assert alerts[0].severity == 'warning'

    def test_far_above_average_is_critical(self):
        rows = [trip(i, consumption_per_100=20, trip_date=date(2024, 3, i)) for i in range(1, 4)]
        rows.append(trip(4, consumption_per_100=60, trip_date=date(2024, 3, 4)))
        assert aggregates.abnormal_consumption_alerts(rows)[0].severity == 'critical'

    def test_vehicle_needs_three_measured_trips(self):
        rows = [
            trip(1, consumption_per_100=20),
            trip(2, consumption_per_100=60),
            trip(3, consumption_per_100=None),
        ]
        assert aggregates.abnormal_consumption_alerts(rows) == []

    def test_at_most_two_trips_per_vehicle(self):
        rows = [trip(i, consumption_per_100=10, trip_date=date(2024, 3, i)) for i in range(1, 8)]
        rows += [trip(i, consumption_per_100=40, trip_date=date(2024, 3, i)) for i in range(8, 11)]
        alerts = aggregates.abnormal_consumption_alerts(rows)
        assert [a.data['trip_id'] for a in alerts] == [10, 9]


class TestPendingPaymentAlerts:

    @pytest.mark.parametrize('days, severity', [
        (0, 'info'), (15, 'info'), (16, 'warning'), (30, 'warning'), (31, 'critical'),
    ])
    def test_severity_by_days_overdue(self, days, severity):
        assert aggregates.payment_severity(days) == severity

    def test_oldest_mission_first(self):
        today = date(2024, 4, 30)
        alerts = aggregates.pending_payment_alerts([
            mission(1, date(2024, 4, 25)),
            mission(2, date(2024, 3, 20)),
            mission(3, date(2024, 4, 10)),
            mission(4, date(2024, 3, 1), balance_paid=True),
            mission(5, date(2024, 3, 1), status='cancelled'),
            mission(6, date(2024, 3, 1), balance_amount=0),
        ], today)
        assert [a.data['mission_id'] for a in alerts] == [2, 3, 1]
        assert [a.severity for a in alerts] == ['critical', 'warning', 'info']
        assert alerts[0].data['days_overdue'] == 41
        assert alerts[0].data['subcontractor'] == 'Lagune Transit SARL'


class TestMergeAlerts:

    def test_most_recent_first_with_limit(self):
        fuel = aggregates.fuel_variance_alerts([
            trip(1, fuel_variance=15, created_at=datetime(2024, 3, 1, 8)),
        ])
        payments = aggregates.pending_payment_alerts([
            {**mission(2, date(2024, 3, 1)), 'created_at': datetime(2024, 3, 2, 8)},
            {**mission(3, date(2024, 2, 1)), 'created_at': datetime(2024, 2, 1, 8)},
        ], date(2024, 3, 10))
        merged = aggregates.merge_alerts(fuel, payments, limit=2)
        assert [a.id for a in merged] == ['pending-payment-2', 'fuel-variance-1']


class TestAlertService:

    @pytest.fixture
    def fleet(self, session):
        fleet = Fleet(session)
        fleet.trip(trip_date=date(2024, 3, 4), start_odometer=1000, actual_fuel=75)
        fleet.trip(trip_date=date(2024, 3, 6), start_odometer=2000, actual_fuel=70)
        subcontractor = create_subcontractor(session)
        args = (subcontractor, fleet.port, fleet.depot, fleet.container_type)
        create_mission(session, *args, total_amount=1000, mission_date=date(2024, 3, 10))
        create_mission(session, *args, total_amount=1000, mission_date=date(2024, 3, 11),
                       advance_paid=True, balance_paid=True)
        create_mission(session, *args, total_amount=1000, mission_date=date(2024, 3, 12), status='cancelled')
        return fleet

    def test_count_adds_fuel_variances_and_pending_balances(self, session, fleet):
        assert AlertService(session).count() == 2

    def test_fuel_variance(self, session, fleet):
        alerts = AlertService(session).fuel_variance()
        assert len(alerts) == 1
        assert alerts[0].data['variance'] == 15
        assert alerts[0].data['vehicle'] == 'AB-1234-CI'

    def test_pending_payments(self, session, fleet):
        alerts = AlertService(session).pending_payments(today=date(2024, 4, 20))
        assert len(alerts) == 1
        assert alerts[0].severity == 'critical'
        assert alerts[0].data['remaining_amount'] == 100

    def test_active_merges_every_kind(self, session, fleet):
        kinds = {a.type for a in AlertService(session).active(today=date(2024, 4, 20))}
        assert kinds == {'fuel_variance', 'pending_payment'}

    def test_dashboard_counts_pending_payments(self, session, fleet):
        stats = StatsService(session).dashboard(date(2024, 3, 1), date(2024, 3, 31))
        assert stats.active_alerts == 2


class TestAlertEndpoints:

    def test_count(self, client, session):
        fleet = Fleet(session)
        fleet.trip(actual_fuel=90)
        assert client.get('/api/alerts/count').get_json() == {'count': 1}

    def test_feed(self, client, session):
        fleet = Fleet(session)
        fleet.trip(actual_fuel=90)
        body = client.get('/api/alerts?limit=5').get_json()
        assert body[0]['type'] == 'fuel_variance'
        assert body[0]['severity'] == 'critical'

    def test_invalid_limit(self, client):
        assert client.get('/api/alerts?limit=0').status_code == 400
        assert client.get('/api/alerts/pending-payments?limit=500').status_code == 400

    def test_empty_feeds(self, client):
        for path in ('/api/alerts/fuel-variance', '/api/alerts/consumption', '/api/alerts/pending-payments'):
            resp = client.get(path)
            assert resp.status_code == 200
            assert resp.get_json() == []

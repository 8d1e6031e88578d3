"""
Tests for driver and vehicle rankings, monthly evolution and maintenance alerts
"""
from datetime import date

import pytest

from transport_backend.services import aggregates
from transport_backend.services.driver_service import DriverService
from transport_backend.services.errors import NotFoundError
from transport_backend.services.vehicle_service import VehicleService
from transport_backend.tests.factories import Fleet


def driver_trip(driver_id, containers=0, consumption=None, **kwargs):
    row = {
        'driver_id': driver_id,
        'driver': {'last_name': f"Driver{driver_id}", 'first_name': 'Test', 'status': 'active'},
        'container_count': containers,
        'consumption_per_100': consumption,
    }
    row.update(kwargs)
    return row


def vehicle_trip(vehicle_id, consumption):
    return {
        'vehicle_id': vehicle_id,
        'vehicle': {'plate_number': f"PL-{vehicle_id}", 'make': 'Volvo', 'model': 'FH16',
                    'fuel_type': 'diesel', 'status': 'active'},
        'consumption_per_100': consumption,
    }


class TestRankingAggregates:

    def test_container_ranking(self):
        ranking = aggregates.driver_container_ranking([
            driver_trip(1, containers=2),
            driver_trip(2, containers=5),
            driver_trip(1, containers=2),
            {'driver_id': 3, 'driver': None, 'container_count': 9},
        ])
        assert [(r.rank, r.driver_id, r.containers) for r in ranking] == [(1, 2, 5), (2, 1, 4)]
        assert ranking[0].last_name == 'Driver2'

    def test_container_ranking_limit(self):
        rows = [driver_trip(i, containers=i) for i in range(1, 6)]
        assert [r.driver_id for r in aggregates.driver_container_ranking(rows, limit=2)] == [5, 4]

    def test_economical_drivers_need_three_trips(self):
        rows = [driver_trip(1, consumption=c) for c in (30, 32, 34)]
        rows += [driver_trip(2, consumption=c) for c in (25, 27, 29)]
        rows += [driver_trip(3, consumption=c) for c in (10, 12)]
        rows.append(driver_trip(3, consumption=None))
        ranking = aggregates.economical_drivers(rows)
        assert [(r.rank, r.driver_id, r.average_consumption, r.trips) for r in ranking] == [
            (1, 2, 27, 3),
            (2, 1, 32, 3),
        ]

    def test_vehicle_leaders_in_both_directions(self):
        rows = [vehicle_trip(1, c) for c in (30, 30, 30)]
        rows += [vehicle_trip(2, c) for c in (40, 42, 44)]
        rows += [vehicle_trip(3, c) for c in (20, 20)]

        economical = aggregates.vehicle_consumption_leaders(rows)
        assert [v.vehicle_id for v in economical] == [1, 2]
        assert economical[0].plate_number == 'PL-1'
        assert economical[0].fuel_type == 'diesel'

        problematic = aggregates.vehicle_consumption_leaders(rows, most_efficient=False)
        assert [(v.rank, v.vehicle_id, v.average_consumption) for v in problematic] == [(1, 2, 42), (2, 1, 30)]


class TestEvolutionAggregates:

    @pytest.mark.parametrize('today, months, start', [
        (date(2024, 3, 15), 12, date(2023, 4, 1)),
        (date(2024, 3, 15), 1, date(2024, 3, 1)),
        (date(2024, 1, 10), 2, date(2023, 12, 1)),
        (date(2024, 1, 10), 0, date(2024, 1, 1)),
    ])
    def test_evolution_start(self, today, months, start):
        assert aggregates.evolution_start(today, months) == start

    def test_monthly_evolution(self):
        evolution = aggregates.monthly_evolution([
            {'trip_date': date(2024, 2, 20), 'distance': 100, 'consumption_per_100': 40,
             'container_count': 1, 'total_cost': 500},
            {'trip_date': date(2024, 1, 5), 'distance': 200, 'consumption_per_100': 30,
             'container_count': 2, 'total_cost': 1000},
            {'trip_date': date(2024, 2, 2), 'distance': 50, 'consumption_per_100': None,
             'container_count': 0, 'total_cost': 200},
        ])
        assert [m.month for m in evolution] == ['2024-01', '2024-02']
        february = evolution[1]
        assert february.trips == 2
        assert february.total_km == 150
        assert february.containers == 1
        assert february.average_consumption == 40
        assert february.total_cost == 700


class TestMaintenanceAggregates:

    def test_quiet_vehicle(self):
        trips = [{'trip_date': date(2024, 3, i), 'consumption_per_100': 30, 'fuel_variance': 2} for i in range(1, 6)]
        assert aggregates.vehicle_maintenance_alerts({'odometer': 120000}, trips) == []

    def test_every_check(self):
        trips = [{'trip_date': date(2024, 3, i), 'consumption_per_100': 30, 'fuel_variance': 0} for i in range(1, 5)]
        trips.append({'trip_date': date(2024, 3, 5), 'consumption_per_100': 50, 'fuel_variance': 15})
        alerts = aggregates.vehicle_maintenance_alerts({'odometer': 600000}, trips)
        assert [(a.type, a.severity) for a in alerts] == [
            ('mileage', 'warning'),
            ('consumption', 'error'),
            ('fuel_variance', 'warning'),
        ]

    def test_consumption_check_needs_five_trips(self):
        trips = [{'trip_date': date(2024, 3, i), 'consumption_per_100': c} for i, c in enumerate((30, 30, 30, 60), 1)]
        assert aggregates.vehicle_maintenance_alerts({'odometer': 0}, trips) == []


class TestDriverRankings:

    def test_container_and_economical_rankings(self, session):
        fleet = Fleet(session)
        boxes = [{'container_type_id': fleet.container_type.id, 'quantity': 2}]
        for i in range(3):
            fleet.trip(trip_date=date(2024, 3, i + 1), start_odometer=1000 * (i + 1), actual_fuel=60, containers=boxes)
            fleet.trip(trip_date=date(2024, 3, i + 1), driver=fleet.other_driver, vehicle=fleet.other_vehicle,
                       start_odometer=50000 + 1000 * i, actual_fuel=80)
        service = DriverService(session)

        containers = service.container_ranking()
        assert [(r.driver_id, r.containers) for r in containers] == [
            (fleet.driver.id, 6),
            (fleet.other_driver.id, 0),
        ]

        economical = service.economical_ranking()
        assert [(r.driver_id, r.average_consumption) for r in economical] == [
            (fleet.driver.id, 30),
            (fleet.other_driver.id, 40),
        ]
        assert service.economical_ranking(date_from=date(2024, 3, 2)) == []

    def test_performance_evolution(self, session):
        fleet = Fleet(session)
        fleet.trip(trip_date=date(2023, 6, 1), start_odometer=1000)
        fleet.trip(trip_date=date(2024, 1, 15), start_odometer=2000)
        fleet.trip(trip_date=date(2024, 2, 10), start_odometer=3000)
        fleet.trip(trip_date=date(2024, 2, 20), start_odometer=4000)
        service = DriverService(session)

        evolution = service.performance_evolution(fleet.driver.id, months=2, today=date(2024, 2, 28))
        assert [(m.month, m.trips) for m in evolution] == [('2024-01', 1), ('2024-02', 2)]
        assert service.performance_evolution(fleet.driver.id, months=1, today=date(2024, 2, 28))[0].trips == 2

    def test_evolution_for_unknown_driver(self, session):
        with pytest.raises(NotFoundError):
            DriverService(session).performance_evolution(999)


class TestVehicleRankings:

    @pytest.fixture
    def fleet(self, session):
        fleet = Fleet(session)
        for i in range(4):
            fleet.trip(trip_date=date(2024, 3, i + 1), start_odometer=1000 * (i + 1), actual_fuel=60)
        for i in range(4):
            fleet.trip(trip_date=date(2024, 3, i + 1), driver=fleet.other_driver, vehicle=fleet.other_vehicle,
                       start_odometer=50000 + 1000 * i, actual_fuel=60)
        fleet.trip(trip_date=date(2024, 3, 5), driver=fleet.other_driver, vehicle=fleet.other_vehicle,
                   start_odometer=54000, actual_fuel=100)
        return fleet

    def test_economical_and_problematic(self, session, fleet):
        service = VehicleService(session)
        assert [v.plate_number for v in service.economical()] == ['AB-1234-CI', 'CD-5678-CI']
        problematic = service.problematic(limit=1)
        assert [(v.plate_number, v.average_consumption) for v in problematic] == [('CD-5678-CI', 34)]

    def test_maintenance_alerts(self, session, fleet):
        fleet.other_vehicle.odometer = 600000
        session.commit()
        alerts = VehicleService(session).maintenance_alerts(fleet.other_vehicle.id)
        assert [a.type for a in alerts] == ['mileage', 'consumption', 'fuel_variance']
        assert VehicleService(session).maintenance_alerts(fleet.vehicle.id) == []

    def test_performance_evolution(self, session, fleet):
        evolution = VehicleService(session).performance_evolution(
            fleet.vehicle.id, months=1, today=date(2024, 3, 31)
        )
        assert len(evolution) == 1
        assert evolution[0].trips == 4
        assert evolution[0].total_km == 800
        assert evolution[0].average_consumption == 30


class TestRankingEndpoints:

    def test_driver_rankings(self, client, session):
        fleet = Fleet(session)
        fleet.trip(containers=[{'container_type_id': fleet.container_type.id, 'quantity': 3}])
        body = client.get('/api/drivers/rankings/containers?limit=5').get_json()
        assert body[0]['rank'] == 1
        assert body[0]['containers'] == 3
        assert client.get('/api/drivers/rankings/economical').get_json() == []

    def test_vehicle_rankings(self, client, session):
        Fleet(session)
        assert client.get('/api/vehicles/rankings/economical').status_code == 200
        assert client.get('/api/vehicles/rankings/problematic?limit=0').status_code == 400

    def test_evolution_and_maintenance(self, client, session):
        fleet = Fleet(session)
        assert client.get(f'/api/drivers/{fleet.driver.id}/evolution').status_code == 200
        assert client.get(f'/api/drivers/{fleet.driver.id}/evolution?months=0').status_code == 400
        assert client.get(f'/api/vehicles/{fleet.vehicle.id}/evolution?months=6').get_json() == []
        assert client.get(f'/api/vehicles/{fleet.vehicle.id}/maintenance-alerts').get_json() == []
        assert client.get('/api/vehicles/999/maintenance-alerts').status_code == 404
        assert client.get('/api/drivers/999/evolution').status_code == 404

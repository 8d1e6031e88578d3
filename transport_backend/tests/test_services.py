"""
Tests for entity services
"""
from datetime import date

import pytest
from marshmallow import ValidationError

from transport_backend.models.trip import Trip
from transport_backend.models.vehicle import Vehicle
from transport_backend.services.driver_service import DriverService
from transport_backend.services.errors import BusinessRuleError, NotFoundError
from transport_backend.services.mission_service import MissionService, split_amount
from transport_backend.services.reference_service import ReferenceService
from transport_backend.services.subcontractor_service import SubcontractorService
from transport_backend.services.trip_service import TripService, apply_computed_fields
from transport_backend.services.vehicle_service import VehicleService
from transport_backend.tests.factories import (
    Fleet, create_driver, create_mission, create_subcontractor, create_vehicle,
)


class TestDriverService:

    def test_delete_marks_driver_inactive(self, session):
        driver = create_driver(session)
        service = DriverService(session)
        service.delete(driver.id)
        assert service.get_by_id(driver.id).status == 'inactive'
        assert service.get_active() == []

    def test_duplicate_license_is_refused(self, session):
        service = DriverService(session)
        service.create({'last_name': 'Kouame', 'first_name': 'Yao', 'license_number': 'CI-1'})
        with pytest.raises(BusinessRuleError):
            service.create({'last_name': 'Kone', 'first_name': 'Ali', 'license_number': 'CI-1'})

    def test_update_missing_driver(self, session):
        with pytest.raises(NotFoundError):
            DriverService(session).update(999, {'phone': '0102'})

    def test_get_by_id_missing_returns_none(self, session):
        assert DriverService(session).get_by_id(999) is None

    def test_stats(self, session):
        fleet = Fleet(session)
        fleet.trip(distance=200, actual_fuel=70)
        fleet.trip(distance=100, actual_fuel=40, start_odometer=20000)
        fleet.trip(driver=fleet.other_driver, start_odometer=30000)
        stats = DriverService(session).stats(fleet.driver.id)
        assert stats.trip_count == 2
        assert stats.total_km == 300
        assert stats.average_consumption == 37.5

    def test_status_distribution(self, session):
        create_driver(session, 'A', 'A')
        create_driver(session, 'B', 'B')
        create_driver(session, 'C', 'C', status='inactive')
        entries = DriverService(session).status_distribution()
        assert [(e.key, e.percentage) for e in entries] == [('active', 66.7), ('inactive', 33.3)]


class TestVehicleService:

    def test_plate_is_upper_cased(self, session):
        vehicle = VehicleService(session).create({'plate_number': ' ab-1234-ci '})
        assert vehicle.plate_number == 'AB-1234-CI'

    def test_duplicate_plate_is_refused(self, session):
        create_vehicle(session, 'AB-1234-CI')
        with pytest.raises(BusinessRuleError):
            VehicleService(session).create({'plate_number': 'ab-1234-ci'})

    def test_delete_blocked_while_trips_reference_vehicle(self, session):
        fleet = Fleet(session)
        fleet.trip()
        with pytest.raises(BusinessRuleError):
            VehicleService(session).delete(fleet.vehicle.id)
        assert session.get(Vehicle, fleet.vehicle.id) is not None

    def test_delete_unused_vehicle(self, session):
        vehicle = create_vehicle(session)
        assert VehicleService(session).delete(vehicle.id) is True
        assert session.get(Vehicle, vehicle.id) is None


class TestSubcontractorService:

    def test_delete_blocked_by_missions(self, session):
        fleet = Fleet(session)
        subcontractor = create_subcontractor(session)
        create_mission(session, subcontractor, fleet.port, fleet.depot, fleet.container_type)
        with pytest.raises(BusinessRuleError):
            SubcontractorService(session).delete(subcontractor.id)

    def test_company_name_unique_ignoring_case(self, session):
        create_subcontractor(session, 'Savane Logistique')
        with pytest.raises(BusinessRuleError):
            SubcontractorService(session).create({'company_name': 'savane logistique'})

    def test_financial_rollup(self, session):
        fleet = Fleet(session)
        subcontractor = create_subcontractor(session)
        args = (subcontractor, fleet.port, fleet.depot, fleet.container_type)
        create_mission(session, *args, total_amount=1000, advance_paid=True)
        create_mission(session, *args, total_amount=500)

        rollup = SubcontractorService(session).financial_rollup(subcontractor.id)
        assert rollup.total_amount == 1500
        assert rollup.paid_amount == 900
        assert rollup.remaining_amount == 600

    def test_rollup_without_missions(self, session):
        subcontractor = create_subcontractor(session)
        rollup = SubcontractorService(session).financial_rollup(subcontractor.id)
        assert rollup.total_missions == 0
        assert rollup.remaining_amount == 0


class TestMissionService:

    def _data(self, fleet, subcontractor, **kwargs):
        data = {
            'subcontractor_id': subcontractor.id,
            'mission_date': date(2024, 3, 10),
            'origin_id': fleet.port.id,
            'destination_id': fleet.depot.id,
            'container_type_id': fleet.container_type.id,
            'total_amount': 1000,
        }
        data.update(kwargs)
        return data

    def test_split_amount(self):
        assert split_amount(1000) == (900, 100)
        advance, balance = split_amount(333.33)
        assert round(advance + balance, 2) == 333.33

    def test_create_computes_tranches(self, session):
        fleet = Fleet(session)
        subcontractor = create_subcontractor(session)
        mission = MissionService(session).create(self._data(fleet, subcontractor))
        assert mission.advance_amount == 900
        assert mission.balance_amount == 100
        assert mission.payment_status == 'pending'

    def test_update_total_recomputes_tranches(self, session):
        fleet = Fleet(session)
        subcontractor = create_subcontractor(session)
        service = MissionService(session)
        mission = service.create(self._data(fleet, subcontractor))
        service.update(mission.id, {'total_amount': 2000})
        assert (mission.advance_amount, mission.balance_amount) == (1800, 200)

    def test_same_origin_and_destination_refused(self, session):
        fleet = Fleet(session)
        subcontractor = create_subcontractor(session)
        with pytest.raises(BusinessRuleError):
            MissionService(session).create(self._data(fleet, subcontractor, destination_id=fleet.port.id))

    def test_unknown_subcontractor(self, session):
        fleet = Fleet(session)
        subcontractor = create_subcontractor(session)
        with pytest.raises(NotFoundError):
            MissionService(session).create(self._data(fleet, subcontractor, subcontractor_id=999))

    def test_balance_cannot_be_paid_before_advance(self, session):
        fleet = Fleet(session)
        subcontractor = create_subcontractor(session)
        service = MissionService(session)
        mission = service.create(self._data(fleet, subcontractor))
        with pytest.raises(BusinessRuleError):
            service.pay_balance(mission.id)

        service.pay_advance(mission.id, date(2024, 3, 12))
        assert mission.payment_status == 'partial'
        assert mission.advance_paid_date == date(2024, 3, 12)
        service.pay_balance(mission.id)
        assert mission.payment_status == 'complete'

    def test_clearing_a_flag_clears_its_date(self, session):
        fleet = Fleet(session)
        subcontractor = create_subcontractor(session)
        service = MissionService(session)
        mission = service.create(self._data(fleet, subcontractor, advance_paid=True))
        service.update_payment(mission.id, advance_paid=False)
        assert mission.advance_paid is False
        assert mission.advance_paid_date is None

    def test_awaiting_payment(self, session):
        fleet = Fleet(session)
        subcontractor = create_subcontractor(session)
        args = (subcontractor, fleet.port, fleet.depot, fleet.container_type)
        waiting = create_mission(session, *args, status='completed', advance_paid=True)
        create_mission(session, *args, status='completed', advance_paid=True, balance_paid=True)
        create_mission(session, *args, status='ongoing')
        assert [m.id for m in MissionService(session).awaiting_payment()] == [waiting.id]


class TestTripService:

    def test_computed_fields(self):
        trip = Trip(start_odometer=1000, end_odometer=1400, planned_fuel=100, actual_fuel=112,
                    fuel_price=700, toll_cost=3000, other_costs=500)
        apply_computed_fields(trip)
        assert trip.distance == 400
        assert trip.fuel_variance == 12
        assert trip.fuel_amount == 78400
        assert trip.consumption_per_100 == 28
        assert trip.total_cost == 81900

    def test_open_trip_has_no_consumption(self):
        trip = Trip(start_odometer=1000, actual_fuel=50, fuel_price=700)
        apply_computed_fields(trip)
        assert trip.distance is None
        assert trip.consumption_per_100 is None

    def test_trip_number_sequence(self, session):
        fleet = Fleet(session)
        first = fleet.trip(trip_date=date(2024, 3, 10))
        second = fleet.trip(trip_date=date(2024, 3, 10), start_odometer=20000)
        other_day = fleet.trip(trip_date=date(2024, 3, 11), start_odometer=30000)
        assert first.trip_number == 'TR-20240310-001'
        assert second.trip_number == 'TR-20240310-002'
        assert other_day.trip_number == 'TR-20240311-001'
        assert TripService(session).get_by_number('TR-20240310-002').id == second.id

    def test_containers_are_saved(self, session):
        fleet = Fleet(session)
        trip = fleet.trip(containers=[
            {'container_type_id': fleet.container_type.id, 'quantity': 2, 'container_number': 'MSKU1234567'},
        ])
        assert trip.container_count == 2

    def test_end_odometer_must_exceed_start(self, session):
        fleet = Fleet(session)
        with pytest.raises(BusinessRuleError):
            fleet.trip(start_odometer=5000, distance=0)

    def test_unknown_driver(self, session):
        fleet = Fleet(session)
        with pytest.raises(NotFoundError):
            TripService(session).create({
                'trip_date': date(2024, 3, 10),
                'driver_id': 999,
                'vehicle_id': fleet.vehicle.id,
                'origin_id': fleet.port.id,
                'destination_id': fleet.depot.id,
                'start_odometer': 100,
            })

    def test_record_return(self, session):
        fleet = Fleet(session)
        trip = fleet.trip(start_odometer=10000, distance=None, actual_fuel=None, status='ongoing')
        service = TripService(session)
        service.record_return(trip.id, {'end_odometer': 10250, 'actual_fuel': 80})

        assert trip.status == 'completed'
        assert trip.distance == 250
        assert trip.consumption_per_100 == 32
        assert session.get(Vehicle, fleet.vehicle.id).odometer == 10250

    def test_record_return_requires_end_odometer(self, session):
        fleet = Fleet(session)
        trip = fleet.trip(distance=None, status='ongoing')
        with pytest.raises(ValidationError):
            TripService(session).record_return(trip.id, {'actual_fuel': 80})

    def test_cancelled_trip_cannot_be_closed(self, session):
        fleet = Fleet(session)
        trip = fleet.trip(distance=None, status='cancelled')
        with pytest.raises(BusinessRuleError):
            TripService(session).record_return(trip.id, {'end_odometer': 20000})

    def test_summary(self, session):
        fleet = Fleet(session)
        fleet.trip(distance=200, actual_fuel=70)
        fleet.trip(distance=100, actual_fuel=40, start_odometer=20000, status='ongoing')
        summary = TripService(session).summary({'status': 'completed'})
        assert summary.trips == 1
        assert summary.total_km == 200


class TestReferenceService:

    def test_locations_by_region(self, session):
        service = ReferenceService(session)
        service.create_location({'name': 'Port of Abidjan', 'region': 'Lagunes'})
        service.create_location({'name': 'Korhogo Warehouse', 'region': 'Savanes'})
        assert [l.name for l in service.list_locations('Savanes')] == ['Korhogo Warehouse']
        assert len(service.list_locations()) == 2

    def test_duplicate_container_type(self, session):
        service = ReferenceService(session)
        service.create_container_type({'name': "20' Dry", 'size_feet': 20})
        with pytest.raises(BusinessRuleError):
            service.create_container_type({'name': "20' Dry", 'size_feet': 20})

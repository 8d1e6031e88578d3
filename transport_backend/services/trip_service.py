import logging
from marshmallow import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from transport_backend.extensions import db
from transport_backend.models.driver import Driver
from transport_backend.models.trip import Trip, TripContainer, TripStatus
from transport_backend.models.vehicle import Vehicle
from transport_backend.services import aggregates
from transport_backend.services.errors import ServiceError, NotFoundError, BusinessRuleError
from transport_backend.services.query_service import Listing, QueryTranslator
from transport_backend.utils.pagination import make_descriptor

TRIP_LISTING = Listing(
    model=Trip,
    label='trips',
    search_columns=[Trip.trip_number],
    equality_filters={
        'status': Trip.status,
        'driver_id': Trip.driver_id,
        'vehicle_id': Trip.vehicle_id,
        'origin_id': Trip.origin_id,
        'destination_id': Trip.destination_id,
    },
    range_filters={
        'date_from': (Trip.trip_date, '>='),
        'date_to': (Trip.trip_date, '<='),
    },
    sortable={
        'trip_date': Trip.trip_date,
        'trip_number': Trip.trip_number,
        'distance': Trip.distance,
        'consumption_per_100': Trip.consumption_per_100,
        'total_cost': Trip.total_cost,
        'status': Trip.status,
    },
    default_order=[(Trip.trip_date, True), (Trip.trip_number, True)],
    load_options=[
        joinedload(Trip.driver),
        joinedload(Trip.vehicle),
        joinedload(Trip.origin),
        joinedload(Trip.destination),
        selectinload(Trip.containers).joinedload(TripContainer.container_type),
    ],
)


def apply_computed_fields(trip):
    """Derive distance, fuel and cost figures from the raw readings."""
    if trip.end_odometer is not None and trip.start_odometer is not None:
        trip.distance = float(trip.end_odometer - trip.start_odometer)
    else:
        trip.distance = None

    if trip.actual_fuel is not None and trip.planned_fuel is not None:
        trip.fuel_variance = round(trip.actual_fuel - trip.planned_fuel, 2)
    else:
        trip.fuel_variance = None

    if trip.actual_fuel is not None and trip.fuel_price is not None:
        trip.fuel_amount = round(trip.actual_fuel * trip.fuel_price, 2)
    else:
        trip.fuel_amount = None

    if trip.actual_fuel is not None and trip.distance:
        trip.consumption_per_100 = round(trip.actual_fuel / trip.distance * 100, 2)
    else:
        trip.consumption_per_100 = None

    trip.total_cost = round((trip.fuel_amount or 0) + (trip.toll_cost or 0) + (trip.other_costs or 0), 2)
    return trip


def check_odometer(start_odometer, end_odometer):
    if end_odometer is not None and start_odometer is not None and end_odometer <= start_odometer:
        raise BusinessRuleError("End odometer must be greater than start odometer.")


class TripService:
    def __init__(self, session=None):
        self.session = session or db.session
        self.translator = QueryTranslator(self.session)

    def list(self, filters=None, page=1, page_size=None, sort_by=None, sort_desc=None):
        descriptor = make_descriptor(filters, page, page_size, sort_by, sort_desc)
        return self.translator.fetch_page(TRIP_LISTING, descriptor)

    def get_all(self, filters=None):
        return self.translator.fetch_all(TRIP_LISTING, filters)

    def get_by_id(self, trip_id):
        try:
            return (
                self.session.query(Trip)
                .options(*TRIP_LISTING.load_options)
                .filter(Trip.id == trip_id)
                .first()
            )
        except SQLAlchemyError as e:
            logging.error(f"Error fetching trip: {e}", exc_info=True)
            raise ServiceError("Could not fetch trip. Please try again later.")

    def get_by_number(self, trip_number):
        try:
            return (
                self.session.query(Trip)
                .options(*TRIP_LISTING.load_options)
                .filter(Trip.trip_number == trip_number)
                .first()
            )
        except SQLAlchemyError as e:
            logging.error(f"Error fetching trip {trip_number}: {e}", exc_info=True)
            raise ServiceError("Could not fetch trip. Please try again later.")

    def _get_or_raise(self, trip_id):
        trip = self.session.get(Trip, trip_id)
        if not trip:
            raise NotFoundError("Trip not found")
        return trip

    def generate_trip_number(self, trip_date):
        prefix = f"TR-{trip_date.strftime('%Y%m%d')}-"
        existing = self.session.query(Trip).filter(Trip.trip_number.like(f"{prefix}%")).count()
        sequence = existing + 1
        while self.session.query(Trip).filter(Trip.trip_number == f"{prefix}{sequence:03d}").first():
            sequence += 1
        return f"{prefix}{sequence:03d}"

    def _check_references(self, data):
        if data.get('origin_id') is not None and data.get('origin_id') == data.get('destination_id'):
            raise BusinessRuleError("Origin and destination must be different.")
        if 'driver_id' in data and not self.session.get(Driver, data['driver_id']):
            raise NotFoundError("Driver not found")
        if 'vehicle_id' in data and not self.session.get(Vehicle, data['vehicle_id']):
            raise NotFoundError("Vehicle not found")

    def create(self, data):
        try:
            data = dict(data)
            containers = data.pop('containers', None) or []
            self._check_references(data)
            check_odometer(data.get('start_odometer'), data.get('end_odometer'))
            if not data.get('trip_number'):
                data['trip_number'] = self.generate_trip_number(data['trip_date'])

            trip = Trip(**data)
            trip.containers = [TripContainer(**c) for c in containers]
            apply_computed_fields(trip)
            self.session.add(trip)
            self.session.commit()
            logging.info(f"Created trip {trip.trip_number} with {len(containers)} container line(s)")
            return trip
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error creating trip: {e}", exc_info=True)
            raise ServiceError("Could not create trip. Please try again later.")

    def update(self, trip_id, data):
        try:
            trip = self._get_or_raise(trip_id)
            data = dict(data)
            containers = data.pop('containers', None)
            merged = {
                'origin_id': data.get('origin_id', trip.origin_id),
                'destination_id': data.get('destination_id', trip.destination_id),
            }
            for key in ('driver_id', 'vehicle_id'):
                if key in data:
                    merged[key] = data[key]
            self._check_references(merged)
            check_odometer(data.get('start_odometer', trip.start_odometer), data.get('end_odometer', trip.end_odometer))

            for key, value in data.items():
                setattr(trip, key, value)
            if containers is not None:
                trip.containers = [TripContainer(**c) for c in containers]
            apply_computed_fields(trip)
            self.session.commit()
            return trip
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error updating trip: {e}", exc_info=True)
            raise ServiceError("Could not update trip. Please try again later.")

    def delete(self, trip_id):
        try:
            trip = self._get_or_raise(trip_id)
            self.session.delete(trip)
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error deleting trip: {e}", exc_info=True)
            raise ServiceError("Could not delete trip. Please try again later.")

    def record_return(self, trip_id, data):
        """Close a trip with its return readings and move the vehicle odometer forward."""
        try:
            trip = self._get_or_raise(trip_id)
            if trip.status == TripStatus.CANCELLED.value:
                raise BusinessRuleError("A cancelled trip cannot be closed.")
            if data.get('end_odometer') is None:
                raise ValidationError({'end_odometer': ['Missing data for required field.']})
            check_odometer(trip.start_odometer, data.get('end_odometer'))

            for key in ('end_odometer', 'actual_fuel', 'fuel_price', 'toll_cost', 'other_costs', 'notes'):
                if key in data and data[key] is not None:
                    setattr(trip, key, data[key])
            trip.status = TripStatus.COMPLETED.value
            apply_computed_fields(trip)

            vehicle = self.session.get(Vehicle, trip.vehicle_id)
            if vehicle and (vehicle.odometer or 0) < trip.end_odometer:
                vehicle.odometer = trip.end_odometer
            self.session.commit()
            logging.info(f"Trip {trip.trip_number} closed at {trip.end_odometer} km")
            return trip
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error recording trip return: {e}", exc_info=True)
            raise ServiceError("Could not record trip return. Please try again later.")

    def summary(self, filters=None):
        return aggregates.trip_totals(self.get_all(filters))

import logging
from datetime import date
from sqlalchemy.exc import SQLAlchemyError

from transport_backend.extensions import db
from transport_backend.models.vehicle import Vehicle
from transport_backend.models.trip import Trip
from transport_backend.services import aggregates
from transport_backend.services.errors import ServiceError, NotFoundError, BusinessRuleError
from transport_backend.services.query_service import Listing, QueryTranslator
from transport_backend.services.trip_service import TRIP_LISTING
from transport_backend.utils.pagination import make_descriptor

VEHICLE_LISTING = Listing(
    model=Vehicle,
    label='vehicles',
    search_columns=[Vehicle.plate_number, Vehicle.make, Vehicle.model],
    equality_filters={'status': Vehicle.status, 'fuel_type': Vehicle.fuel_type},
    sortable={
        'plate_number': Vehicle.plate_number,
        'make': Vehicle.make,
        'year': Vehicle.year,
        'odometer': Vehicle.odometer,
        'status': Vehicle.status,
    },
    default_order=[(Vehicle.plate_number, False)],
)


def normalize_plate(plate):
    return plate.strip().upper() if plate else plate


class VehicleService:
    def __init__(self, session=None):
        self.session = session or db.session
        self.translator = QueryTranslator(self.session)

    def list(self, filters=None, page=1, page_size=None, sort_by=None, sort_desc=None):
        descriptor = make_descriptor(filters, page, page_size, sort_by, sort_desc)
        return self.translator.fetch_page(VEHICLE_LISTING, descriptor)

    def get_active(self):
        try:
            return Vehicle.query_active(self.session).order_by(Vehicle.plate_number).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching active vehicles: {e}", exc_info=True)
            raise ServiceError("Could not fetch vehicles. Please try again later.")

    def get_by_id(self, vehicle_id):
        try:
            return self.session.get(Vehicle, vehicle_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching vehicle: {e}", exc_info=True)
            raise ServiceError("Could not fetch vehicle. Please try again later.")

    def _check_plate(self, plate_number, exclude_id=None):
        query = self.session.query(Vehicle).filter(Vehicle.plate_number == plate_number)
        if exclude_id is not None:
            query = query.filter(Vehicle.id != exclude_id)
        if query.first():
            raise BusinessRuleError(f"A vehicle with plate number {plate_number} already exists.")

    def create(self, data):
        try:
            data = dict(data)
            data['plate_number'] = normalize_plate(data.get('plate_number'))
            self._check_plate(data['plate_number'])
            vehicle = Vehicle(**data)
            self.session.add(vehicle)
            self.session.commit()
            logging.info(f"Created vehicle {vehicle.id} ({vehicle.plate_number})")
            return vehicle
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error creating vehicle: {e}", exc_info=True)
            raise ServiceError("Could not create vehicle. Please try again later.")

    def update(self, vehicle_id, data):
        try:
            vehicle = self.session.get(Vehicle, vehicle_id)
            if not vehicle:
                raise NotFoundError("Vehicle not found")
            data = dict(data)
            if 'plate_number' in data:
                data['plate_number'] = normalize_plate(data['plate_number'])
                self._check_plate(data['plate_number'], exclude_id=vehicle_id)
            for key, value in data.items():
                setattr(vehicle, key, value)
            self.session.commit()
            return vehicle
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error updating vehicle: {e}", exc_info=True)
            raise ServiceError("Could not update vehicle. Please try again later.")

    def delete(self, vehicle_id):
        try:
            vehicle = self.session.get(Vehicle, vehicle_id)
            if not vehicle:
                raise NotFoundError("Vehicle not found")
            trip_count = self.session.query(Trip).filter(Trip.vehicle_id == vehicle_id).count()
            if trip_count:
                raise BusinessRuleError(
                    f"Cannot delete vehicle {vehicle.plate_number}: it is referenced by {trip_count} trip(s)."
                )
            self.session.delete(vehicle)
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error deleting vehicle: {e}", exc_info=True)
            raise ServiceError("Could not delete vehicle. Please try again later.")

    def stats(self, vehicle_id, date_from=None, date_to=None):
        if not self.get_by_id(vehicle_id):
            raise NotFoundError("Vehicle not found")
        try:
            query = self.session.query(Trip).filter(Trip.vehicle_id == vehicle_id)
            if date_from:
                query = query.filter(Trip.trip_date >= date_from)
            if date_to:
                query = query.filter(Trip.trip_date <= date_to)
            return aggregates.entity_trip_stats(query.all())
        except SQLAlchemyError as e:
            logging.error(f"Error computing vehicle stats: {e}", exc_info=True)
            raise ServiceError("Could not compute vehicle statistics. Please try again later.")

    def _period_trips(self, date_from=None, date_to=None, **filters):
        filters.update({'date_from': date_from, 'date_to': date_to})
        return self.translator.fetch_all(TRIP_LISTING, filters)

    def economical(self, limit=10, date_from=None, date_to=None):
        return aggregates.vehicle_consumption_leaders(self._period_trips(date_from, date_to), limit)

    def problematic(self, limit=10, date_from=None, date_to=None):
        """Heaviest average consumers first."""
        return aggregates.vehicle_consumption_leaders(
            self._period_trips(date_from, date_to), limit, most_efficient=False
        )

    def performance_evolution(self, vehicle_id, months=12, today=None):
        if not self.get_by_id(vehicle_id):
            raise NotFoundError("Vehicle not found")
        start = aggregates.evolution_start(today or date.today(), months)
        return aggregates.monthly_evolution(self._period_trips(start, vehicle_id=vehicle_id))

    def maintenance_alerts(self, vehicle_id):
        vehicle = self.get_by_id(vehicle_id)
        if not vehicle:
            raise NotFoundError("Vehicle not found")
        try:
            recent = (
                self.session.query(Trip)
                .filter(Trip.vehicle_id == vehicle_id)
                .order_by(Trip.trip_date.desc(), Trip.created_at.desc(), Trip.id.desc())
                .limit(aggregates.CONSUMPTION_SAMPLE_SIZE)
                .all()
            )
        except SQLAlchemyError as e:
            logging.error(f"Error fetching vehicle trips: {e}", exc_info=True)
            raise ServiceError("Could not compute maintenance alerts. Please try again later.")
        return aggregates.vehicle_maintenance_alerts(vehicle, recent)

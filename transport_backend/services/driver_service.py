import logging
from datetime import date
from sqlalchemy.exc import SQLAlchemyError

from transport_backend.extensions import db
from transport_backend.models.driver import Driver, DriverStatus
from transport_backend.models.trip import Trip
from transport_backend.services import aggregates
from transport_backend.services.errors import ServiceError, NotFoundError, BusinessRuleError
from transport_backend.services.query_service import Listing, QueryTranslator
from transport_backend.services.trip_service import TRIP_LISTING
from transport_backend.utils.pagination import make_descriptor

DRIVER_LISTING = Listing(
    model=Driver,
    label='drivers',
    search_columns=[Driver.last_name, Driver.first_name, Driver.phone],
    equality_filters={'status': Driver.status},
    sortable={
        'last_name': Driver.last_name,
        'first_name': Driver.first_name,
        'hire_date': Driver.hire_date,
        'status': Driver.status,
        'created_at': Driver.created_at,
    },
    default_order=[(Driver.last_name, False), (Driver.first_name, False)],
)


class DriverService:
    def __init__(self, session=None):
        self.session = session or db.session
        self.translator = QueryTranslator(self.session)

    def list(self, filters=None, page=1, page_size=None, sort_by=None, sort_desc=None):
        descriptor = make_descriptor(filters, page, page_size, sort_by, sort_desc)
        return self.translator.fetch_page(DRIVER_LISTING, descriptor)

    def get_all(self, filters=None):
        return self.translator.fetch_all(DRIVER_LISTING, filters)

    def get_active(self):
        try:
            return Driver.query_active(self.session).order_by(Driver.last_name, Driver.first_name).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching active drivers: {e}", exc_info=True)
            raise ServiceError("Could not fetch drivers. Please try again later.")

    def get_by_id(self, driver_id):
        try:
            return self.session.get(Driver, driver_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching driver: {e}", exc_info=True)
            raise ServiceError("Could not fetch driver. Please try again later.")

    def _check_license(self, license_number, exclude_id=None):
        if not license_number:
            return
        query = self.session.query(Driver).filter(Driver.license_number == license_number)
        if exclude_id is not None:
            query = query.filter(Driver.id != exclude_id)
        if query.first():
            raise BusinessRuleError(f"A driver with license number {license_number} already exists.")

    def create(self, data):
        try:
            self._check_license(data.get('license_number'))
            driver = Driver(**data)
            self.session.add(driver)
            self.session.commit()
            logging.info(f"Created driver {driver.id} ({driver.full_name})")
            return driver
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error creating driver: {e}", exc_info=True)
            raise ServiceError("Could not create driver. Please try again later.")

    def update(self, driver_id, data):
        try:
            driver = self.session.get(Driver, driver_id)
            if not driver:
                raise NotFoundError("Driver not found")
            if 'license_number' in data:
                self._check_license(data['license_number'], exclude_id=driver_id)
            for key, value in data.items():
                setattr(driver, key, value)
            self.session.commit()
            return driver
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error updating driver: {e}", exc_info=True)
            raise ServiceError("Could not update driver. Please try again later.")

    def delete(self, driver_id):
        """Drivers are never removed; deleting one marks it inactive."""
        try:
            driver = self.session.get(Driver, driver_id)
            if not driver:
                raise NotFoundError("Driver not found")
            driver.status = DriverStatus.INACTIVE.value
            self.session.commit()
            return driver
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error deleting driver: {e}", exc_info=True)
            raise ServiceError("Could not delete driver. Please try again later.")

    def stats(self, driver_id, date_from=None, date_to=None):
        if not self.get_by_id(driver_id):
            raise NotFoundError("Driver not found")
        try:
            query = self.session.query(Trip).filter(Trip.driver_id == driver_id)
            if date_from:
                query = query.filter(Trip.trip_date >= date_from)
            if date_to:
                query = query.filter(Trip.trip_date <= date_to)
            return aggregates.entity_trip_stats(query.all())
        except SQLAlchemyError as e:
            logging.error(f"Error computing driver stats: {e}", exc_info=True)
            raise ServiceError("Could not compute driver statistics. Please try again later.")

    def status_distribution(self):
        try:
            drivers = self.session.query(Driver.status).all()
            return aggregates.distribution(drivers, lambda row: row.status)
        except SQLAlchemyError as e:
            logging.error(f"Error computing driver status distribution: {e}", exc_info=True)
            raise ServiceError("Could not compute driver statistics. Please try again later.")

    def _period_trips(self, date_from=None, date_to=None, **filters):
        filters.update({'date_from': date_from, 'date_to': date_to})
        return self.translator.fetch_all(TRIP_LISTING, filters)

    def container_ranking(self, limit=10, date_from=None, date_to=None):
        return aggregates.driver_container_ranking(self._period_trips(date_from, date_to), limit)

    def economical_ranking(self, limit=10, date_from=None, date_to=None):
        """Lowest average consumption first; drivers need at least three measured trips."""
        return aggregates.economical_drivers(self._period_trips(date_from, date_to), limit)

    def performance_evolution(self, driver_id, months=12, today=None):
        if not self.get_by_id(driver_id):
            raise NotFoundError("Driver not found")
        start = aggregates.evolution_start(today or date.today(), months)
        return aggregates.monthly_evolution(self._period_trips(start, driver_id=driver_id))

import logging
from sqlalchemy.exc import SQLAlchemyError

from transport_backend.extensions import db
from transport_backend.models.container_type import ContainerType
from transport_backend.models.location import Location
from transport_backend.services.errors import ServiceError, BusinessRuleError


class ReferenceService:
    """Locations and container types used by trips and missions."""

    def __init__(self, session=None):
        self.session = session or db.session

    def list_locations(self, region=None):
        try:
            query = self.session.query(Location)
            if region:
                query = query.filter(Location.region == region)
            return query.order_by(Location.name).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching locations: {e}", exc_info=True)
            raise ServiceError("Could not fetch locations. Please try again later.")

    def get_location(self, location_id):
        try:
            return self.session.get(Location, location_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching location: {e}", exc_info=True)
            raise ServiceError("Could not fetch location. Please try again later.")

    def create_location(self, data):
        try:
            location = Location(**data)
            self.session.add(location)
            self.session.commit()
            return location
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error creating location: {e}", exc_info=True)
            raise ServiceError("Could not create location. Please try again later.")

    def list_container_types(self):
        try:
            return self.session.query(ContainerType).order_by(ContainerType.size_feet, ContainerType.name).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching container types: {e}", exc_info=True)
            raise ServiceError("Could not fetch container types. Please try again later.")

    def create_container_type(self, data):
        try:
            if self.session.query(ContainerType).filter(ContainerType.name == data['name']).first():
                raise BusinessRuleError(f"Container type {data['name']} already exists.")
            container_type = ContainerType(**data)
            self.session.add(container_type)
            self.session.commit()
            return container_type
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error creating container type: {e}", exc_info=True)
            raise ServiceError("Could not create container type. Please try again later.")

import logging
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from transport_backend.extensions import db
from transport_backend.models.subcontractor import Subcontractor
from transport_backend.models.mission import Mission
from transport_backend.services import aggregates
from transport_backend.services.errors import ServiceError, NotFoundError, BusinessRuleError
from transport_backend.services.query_service import Listing, QueryTranslator
from transport_backend.utils.pagination import make_descriptor

SUBCONTRACTOR_LISTING = Listing(
    model=Subcontractor,
    label='subcontractors',
    search_columns=[Subcontractor.company_name, Subcontractor.contact_name, Subcontractor.phone],
    equality_filters={'status': Subcontractor.status},
    sortable={
        'company_name': Subcontractor.company_name,
        'contact_name': Subcontractor.contact_name,
        'status': Subcontractor.status,
        'created_at': Subcontractor.created_at,
    },
    default_order=[(Subcontractor.company_name, False)],
)


class SubcontractorService:
    def __init__(self, session=None):
        self.session = session or db.session
        self.translator = QueryTranslator(self.session)

    def list(self, filters=None, page=1, page_size=None, sort_by=None, sort_desc=None):
        descriptor = make_descriptor(filters, page, page_size, sort_by, sort_desc)
        return self.translator.fetch_page(SUBCONTRACTOR_LISTING, descriptor)

    def get_by_id(self, subcontractor_id):
        try:
            return self.session.get(Subcontractor, subcontractor_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching subcontractor: {e}", exc_info=True)
            raise ServiceError("Could not fetch subcontractor. Please try again later.")

    def _check_company_name(self, company_name, exclude_id=None):
        query = self.session.query(Subcontractor).filter(
            func.lower(Subcontractor.company_name) == company_name.strip().lower()
        )
        if exclude_id is not None:
            query = query.filter(Subcontractor.id != exclude_id)
        if query.first():
            raise BusinessRuleError(f"A subcontractor named {company_name} already exists.")

    def create(self, data):
        try:
            self._check_company_name(data['company_name'])
            subcontractor = Subcontractor(**data)
            self.session.add(subcontractor)
            self.session.commit()
            return subcontractor
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error creating subcontractor: {e}", exc_info=True)
            raise ServiceError("Could not create subcontractor. Please try again later.")

    def update(self, subcontractor_id, data):
        try:
            subcontractor = self.session.get(Subcontractor, subcontractor_id)
            if not subcontractor:
                raise NotFoundError("Subcontractor not found")
            if 'company_name' in data:
                self._check_company_name(data['company_name'], exclude_id=subcontractor_id)
            for key, value in data.items():
                setattr(subcontractor, key, value)
            self.session.commit()
            return subcontractor
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error updating subcontractor: {e}", exc_info=True)
            raise ServiceError("Could not update subcontractor. Please try again later.")

    def delete(self, subcontractor_id):
        try:
            subcontractor = self.session.get(Subcontractor, subcontractor_id)
            if not subcontractor:
                raise NotFoundError("Subcontractor not found")
            mission_count = self.session.query(Mission).filter(Mission.subcontractor_id == subcontractor_id).count()
            if mission_count:
                raise BusinessRuleError(
                    f"Cannot delete {subcontractor.company_name}: {mission_count} mission(s) are attached to it."
                )
            self.session.delete(subcontractor)
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error deleting subcontractor: {e}", exc_info=True)
            raise ServiceError("Could not delete subcontractor. Please try again later.")

    def financial_rollup(self, subcontractor_id):
        if not self.get_by_id(subcontractor_id):
            raise NotFoundError("Subcontractor not found")
        try:
            missions = self.session.query(Mission).filter(Mission.subcontractor_id == subcontractor_id).all()
            return aggregates.financial_rollup(missions)
        except SQLAlchemyError as e:
            logging.error(f"Error computing subcontractor rollup: {e}", exc_info=True)
            raise ServiceError("Could not compute subcontractor statistics. Please try again later.")

import logging
from datetime import date
from marshmallow import ValidationError
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from transport_backend.extensions import db
from transport_backend.models.mission import Mission, MissionStatus, PaymentStatus, ADVANCE_RATE
from transport_backend.models.subcontractor import Subcontractor
from transport_backend.services import aggregates
from transport_backend.services.errors import ServiceError, NotFoundError, BusinessRuleError
from transport_backend.services.query_service import Listing, QueryTranslator
from transport_backend.utils.pagination import make_descriptor


def payment_status_predicate(value):
    """SQL counterpart of aggregates.payment_status."""
    advance = Mission.advance_paid.is_(True)
    balance = Mission.balance_paid.is_(True)
    if value == PaymentStatus.COMPLETE.value:
        return and_(advance, balance)
    if value == PaymentStatus.PARTIAL.value:
        return or_(and_(advance, ~balance), and_(~advance, balance))
    if value == PaymentStatus.PENDING.value:
        return and_(~advance, ~balance)
    raise ValidationError({'payment_status': [f"Unknown payment status '{value}'."]})


MISSION_LISTING = Listing(
    model=Mission,
    label='missions',
    search_columns=[Mission.container_number],
    equality_filters={
        'status': Mission.status,
        'subcontractor_id': Mission.subcontractor_id,
        'origin_id': Mission.origin_id,
        'destination_id': Mission.destination_id,
        'container_type_id': Mission.container_type_id,
    },
    range_filters={
        'date_from': (Mission.mission_date, '>='),
        'date_to': (Mission.mission_date, '<='),
    },
    custom_filters={'payment_status': payment_status_predicate},
    sortable={
        'mission_date': Mission.mission_date,
        'total_amount': Mission.total_amount,
        'status': Mission.status,
        'created_at': Mission.created_at,
    },
    default_order=[(Mission.mission_date, True)],
    load_options=[
        joinedload(Mission.subcontractor),
        joinedload(Mission.origin),
        joinedload(Mission.destination),
        joinedload(Mission.container_type),
    ],
)


def split_amount(total_amount):
    """90/10 tranches; the balance absorbs rounding so both always sum to the total."""
    total_amount = float(total_amount or 0)
    advance = round(total_amount * ADVANCE_RATE, 2)
    return advance, round(total_amount - advance, 2)


def check_payment_flags(advance_paid, balance_paid):
    if balance_paid and not advance_paid:
        raise BusinessRuleError("The balance cannot be marked as paid before the advance.")


class MissionService:
    def __init__(self, session=None):
        self.session = session or db.session
        self.translator = QueryTranslator(self.session)

    def list(self, filters=None, page=1, page_size=None, sort_by=None, sort_desc=None):
        descriptor = make_descriptor(filters, page, page_size, sort_by, sort_desc)
        return self.translator.fetch_page(MISSION_LISTING, descriptor)

    def get_all(self, filters=None):
        return self.translator.fetch_all(MISSION_LISTING, filters)

    def get_by_id(self, mission_id):
        try:
            return (
                self.session.query(Mission)
                .options(*MISSION_LISTING.load_options)
                .filter(Mission.id == mission_id)
                .first()
            )
        except SQLAlchemyError as e:
            logging.error(f"Error fetching mission: {e}", exc_info=True)
            raise ServiceError("Could not fetch mission. Please try again later.")

    def _get_or_raise(self, mission_id):
        mission = self.session.get(Mission, mission_id)
        if not mission:
            raise NotFoundError("Mission not found")
        return mission

    def create(self, data):
        try:
            data = dict(data)
            if data.get('origin_id') == data.get('destination_id'):
                raise BusinessRuleError("Origin and destination must be different.")
            if not self.session.get(Subcontractor, data.get('subcontractor_id')):
                raise NotFoundError("Subcontractor not found")
            check_payment_flags(data.get('advance_paid'), data.get('balance_paid'))
            data['advance_amount'], data['balance_amount'] = split_amount(data.get('total_amount'))
            mission = Mission(**data)
            self.session.add(mission)
            self.session.commit()
            logging.info(f"Created mission {mission.id} for subcontractor {mission.subcontractor_id}")
            return mission
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error creating mission: {e}", exc_info=True)
            raise ServiceError("Could not create mission. Please try again later.")

    def update(self, mission_id, data):
        try:
            mission = self._get_or_raise(mission_id)
            data = dict(data)
            origin_id = data.get('origin_id', mission.origin_id)
            destination_id = data.get('destination_id', mission.destination_id)
            if origin_id == destination_id:
                raise BusinessRuleError("Origin and destination must be different.")
            check_payment_flags(
                data.get('advance_paid', mission.advance_paid),
                data.get('balance_paid', mission.balance_paid),
            )
            if 'total_amount' in data:
                data['advance_amount'], data['balance_amount'] = split_amount(data['total_amount'])
            for key, value in data.items():
                setattr(mission, key, value)
            self.session.commit()
            return mission
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error updating mission: {e}", exc_info=True)
            raise ServiceError("Could not update mission. Please try again later.")

    def delete(self, mission_id):
        try:
            mission = self._get_or_raise(mission_id)
            self.session.delete(mission)
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error deleting mission: {e}", exc_info=True)
            raise ServiceError("Could not delete mission. Please try again later.")

    def pay_advance(self, mission_id, paid_date=None):
        return self.update_payment(mission_id, advance_paid=True, advance_paid_date=paid_date or date.today())

    def pay_balance(self, mission_id, paid_date=None):
        return self.update_payment(mission_id, balance_paid=True, balance_paid_date=paid_date or date.today())

    def update_payment(self, mission_id, advance_paid=None, balance_paid=None,
                       advance_paid_date=None, balance_paid_date=None):
        try:
            mission = self._get_or_raise(mission_id)
            new_advance = mission.advance_paid if advance_paid is None else advance_paid
            new_balance = mission.balance_paid if balance_paid is None else balance_paid
            check_payment_flags(new_advance, new_balance)

            mission.advance_paid = new_advance
            mission.balance_paid = new_balance
            if new_advance:
                mission.advance_paid_date = advance_paid_date or mission.advance_paid_date or date.today()
            else:
                mission.advance_paid_date = None
            if new_balance:
                mission.balance_paid_date = balance_paid_date or mission.balance_paid_date or date.today()
            else:
                mission.balance_paid_date = None
            self.session.commit()
            logging.info(f"Mission {mission.id} payment status is now {mission.payment_status}")
            return mission
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error updating mission payment: {e}", exc_info=True)
            raise ServiceError("Could not update mission payment. Please try again later.")

    def awaiting_payment(self):
        """Completed missions whose two tranches are not both settled."""
        filters = {'status': MissionStatus.COMPLETED.value}
        missions = self.translator.fetch_all(MISSION_LISTING, filters, sort_by='mission_date')
        return [m for m in missions if m.payment_status != PaymentStatus.COMPLETE.value]

    def financial_summary(self, filters=None):
        return aggregates.missions_financial_summary(self.get_all(filters))

"""
Operational alerts: fuel variances, abnormal consumption and mission
balances still owed to subcontractors.
"""

import logging
from datetime import date
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from transport_backend.extensions import db
from transport_backend.models.mission import Mission, MissionStatus
from transport_backend.models.trip import Trip
from transport_backend.services import aggregates
from transport_backend.services.errors import ServiceError

DEFAULT_ALERT_LIMIT = 10


def _variance_flagged():
    return or_(
        Trip.fuel_variance > aggregates.FUEL_VARIANCE_ALERT,
        Trip.fuel_variance < -aggregates.FUEL_VARIANCE_ALERT,
    )


def _balance_owed():
    return and_(
        Mission.balance_paid.is_(False),
        Mission.balance_amount > 0,
        Mission.status != MissionStatus.CANCELLED.value,
    )


class AlertService:
    def __init__(self, session=None):
        self.session = session or db.session

    def fuel_variance(self, limit=5):
        try:
            trips = (
                self.session.query(Trip)
                .options(joinedload(Trip.driver), joinedload(Trip.vehicle))
                .filter(_variance_flagged())
                .order_by(Trip.trip_date.desc(), Trip.created_at.desc(), Trip.id.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            logging.error(f"Error fetching fuel variance alerts: {e}", exc_info=True)
            raise ServiceError("Could not fetch alerts. Please try again later.")
        return aggregates.fuel_variance_alerts(trips, limit)

    def abnormal_consumption(self, limit=5):
        try:
            trips = (
                self.session.query(Trip)
                .options(joinedload(Trip.vehicle))
                .filter(Trip.consumption_per_100.isnot(None))
                .all()
            )
        except SQLAlchemyError as e:
            logging.error(f"Error fetching consumption alerts: {e}", exc_info=True)
            raise ServiceError("Could not fetch alerts. Please try again later.")
        return aggregates.abnormal_consumption_alerts(trips, limit)

    def pending_payments(self, limit=5, today=None):
        try:
            missions = (
                self.session.query(Mission)
                .options(joinedload(Mission.subcontractor))
                .filter(_balance_owed())
                .order_by(Mission.mission_date.asc(), Mission.id.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            logging.error(f"Error fetching payment alerts: {e}", exc_info=True)
            raise ServiceError("Could not fetch alerts. Please try again later.")
        return aggregates.pending_payment_alerts(missions, today or date.today(), limit)

    def active(self, limit=DEFAULT_ALERT_LIMIT, today=None):
        """Every alert kind merged, most recent first."""
        return aggregates.merge_alerts(
            self.fuel_variance(limit),
            self.abnormal_consumption(limit),
            self.pending_payments(limit, today),
            limit=limit,
        )

    def pending_payment_count(self):
        try:
            return self.session.query(Mission).filter(_balance_owed()).count()
        except SQLAlchemyError as e:
            logging.error(f"Error counting payment alerts: {e}", exc_info=True)
            raise ServiceError("Could not fetch alerts. Please try again later.")

    def count(self):
        """Fuel variance trips plus missions still owing their balance."""
        try:
            fuel = self.session.query(Trip).filter(_variance_flagged()).count()
        except SQLAlchemyError as e:
            logging.error(f"Error counting fuel variance alerts: {e}", exc_info=True)
            raise ServiceError("Could not fetch alerts. Please try again later.")
        return fuel + self.pending_payment_count()

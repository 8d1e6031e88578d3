"""
Dashboard statistics. Rows are fetched through the query layer and handed to
the aggregate engine; nothing here computes on the database side except the
range predicates.
"""

import logging
from datetime import date, timedelta
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from transport_backend.extensions import db
from transport_backend.models.trip import Trip, TripContainer
from transport_backend.services import aggregates
from transport_backend.services.alert_service import AlertService
from transport_backend.services.driver_service import DriverService
from transport_backend.services.errors import ServiceError
from transport_backend.services.query_service import QueryTranslator
from transport_backend.services.trip_service import TRIP_LISTING
from transport_backend.services.view_models import DashboardStats

DEFAULT_PERIOD_DAYS = 30


def default_period(today=None):
    today = today or date.today()
    return today - timedelta(days=DEFAULT_PERIOD_DAYS - 1), today


def previous_period(date_from, date_to):
    """Same-length window ending the day before date_from."""
    length = (date_to - date_from).days + 1
    prev_to = date_from - timedelta(days=1)
    return prev_to - timedelta(days=length - 1), prev_to


class StatsService:
    def __init__(self, session=None):
        self.session = session or db.session
        self.translator = QueryTranslator(self.session)

    def _trips(self, date_from, date_to):
        return self.translator.fetch_all(TRIP_LISTING, {'date_from': date_from, 'date_to': date_to})

    def dashboard(self, date_from, date_to) -> DashboardStats:
        trips = self._trips(date_from, date_to)
        previous = self._trips(*previous_period(date_from, date_to))

        current_totals = aggregates.trip_totals(trips)
        previous_totals = aggregates.trip_totals(previous)
        return DashboardStats(
            date_from=date_from,
            date_to=date_to,
            total_trips=current_totals.trips,
            trips_change=aggregates.period_change(current_totals.trips, previous_totals.trips),
            total_containers=current_totals.containers,
            total_fuel_cost=current_totals.fuel_cost,
            fuel_cost_change=aggregates.period_change(current_totals.fuel_cost, previous_totals.fuel_cost),
            total_cost=current_totals.total_cost,
            average_consumption=current_totals.average_consumption,
            consumption_trend=aggregates.trend(
                current_totals.average_consumption, previous_totals.average_consumption
            ),
            active_alerts=(
                sum(1 for t in trips if aggregates.trip_alerts(t))
                + AlertService(self.session).pending_payment_count()
            ),
        )

    def container_distribution(self, date_from, date_to):
        """Share of each container type, weighted by quantity."""
        try:
            lines = (
                self.session.query(TripContainer)
                .join(Trip, TripContainer.trip_id == Trip.id)
                .options(joinedload(TripContainer.container_type))
                .filter(Trip.trip_date >= date_from, Trip.trip_date <= date_to)
                .all()
            )
        except SQLAlchemyError as e:
            logging.error(f"Error fetching container lines: {e}", exc_info=True)
            raise ServiceError("Could not fetch container statistics. Please try again later.")
        return aggregates.distribution(
            lines,
            lambda line: line.container_type.name if line.container_type else None,
            weight='quantity',
        )

    def consumption_ranking(self, date_from, date_to, limit=10):
        return aggregates.vehicle_consumption_ranking(self._trips(date_from, date_to), limit)

    def trips_series(self, date_from, date_to, fill=False):
        series = aggregates.daily_series(self._trips(date_from, date_to), 'trip_date')
        return aggregates.zero_fill(series, date_from, date_to) if fill else series

    def costs_series(self, date_from, date_to, fill=False):
        series = aggregates.daily_series(
            self._trips(date_from, date_to), 'trip_date', value=aggregates.trip_total_cost
        )
        return aggregates.zero_fill(series, date_from, date_to) if fill else series

    def driver_status_distribution(self):
        return DriverService(self.session).status_distribution()

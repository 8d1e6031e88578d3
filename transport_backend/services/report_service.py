"""
Report generation.

Trips and missions for the requested period are fetched through the query
layer; per-driver and per-vehicle performance is aggregated with pandas the
same way driver scoring is, everything else goes through the aggregate engine.
"""

import logging
from collections import OrderedDict
from typing import List, Optional

import pandas as pd

from transport_backend.extensions import db
from transport_backend.models.mission import MissionStatus
from transport_backend.services import aggregates
from transport_backend.services.driver_service import DriverService
from transport_backend.services.errors import NotFoundError
from transport_backend.services.mission_service import MISSION_LISTING
from transport_backend.services.query_service import QueryTranslator
from transport_backend.services.reference_service import ReferenceService
from transport_backend.services.report_models import (
    AverageMetrics, Comparison, CostCategory, DestinationCost, DestinationInfo,
    DestinationReport, DestinationStatistics, DestinationTrends, DetailedCosts,
    DriverInfo, DriverPerformance, DriverReport, DriverStatistics, ExecutiveKpis,
    ExecutiveSummary, FinancialAnalysis, FinancialAverages, FinancialReport,
    FinancialTrends, FleetPerformance, MissionCostLine, MonthAmount, MonthCount,
    MonthlyCost, MonthlyReport, Projection, ReportFilters, ReportTrip, TopDriver,
    TopVehicle, TotalCosts, VehicleAlerts, VehicleInfo, VehiclePerformance,
    VehicleReport, VehicleStatistics,
)
from transport_backend.services.stats_service import previous_period
from transport_backend.services.trip_service import TRIP_LISTING
from transport_backend.services.vehicle_service import VehicleService
from transport_backend.utils.timezone_utils import month_key, utc_now

TOP_COUNT = 5
BOTTOM_COUNT = 3
TOP_DESTINATIONS = 10

# Vehicle alert thresholds
MAINTENANCE_ODOMETER = 150000
HIGH_MILEAGE_ODOMETER = 200000
ABNORMAL_CONSUMPTION_RATIO = aggregates.ABNORMAL_CONSUMPTION_RATIO

# Period-over-period thresholds, in percent
CONSUMPTION_TREND_THRESHOLD = 5
COST_TREND_THRESHOLD = 10


def _mean(values) -> float:
    values = [v for v in values if v is not None]
    return sum(values) / len(values) if values else 0.0


def _relative(value, reference) -> float:
    if not reference:
        return 0.0
    return round((value - reference) / reference * 100, 1)


def _period_label(date_from, date_to) -> str:
    return f"{date_from.strftime('%d %b')} - {date_to.strftime('%d %b %Y')}"


def driver_efficiency(average_consumption, cost_per_km, total_trips) -> int:
    """0-100 score: consumption 40%, cost per km 30%, activity 30%."""
    score = (
        max(0.0, 100 - average_consumption * 2) * 0.4
        + max(0.0, 100 - cost_per_km * 5) * 0.3
        + min(100, total_trips * 5) * 0.3
    )
    return int(round(score))


def vehicle_efficiency(average_consumption, fuel_cost_per_km, total_trips, alerts) -> int:
    """0-100 score: consumption 50%, fuel cost per km 30%, usage 20%, minus 5 per alert."""
    score = (
        max(0.0, 100 - average_consumption * 2) * 0.5
        + max(0.0, 100 - fuel_cost_per_km * 10) * 0.3
        + min(100, total_trips * 3) * 0.2
        - alerts * 5
    )
    return int(round(max(0.0, score)))


def to_report_trip(trip) -> ReportTrip:
    driver = trip.driver
    vehicle = trip.vehicle
    return ReportTrip(
        id=trip.id,
        trip_number=trip.trip_number,
        date=trip.trip_date,
        driver_id=trip.driver_id,
        driver=driver.full_name if driver else "",
        vehicle_id=trip.vehicle_id,
        vehicle=vehicle.plate_number if vehicle else "",
        origin=trip.origin.name if trip.origin else "",
        destination=trip.destination.name if trip.destination else "",
        km=trip.distance or 0,
        containers=trip.container_count,
        fuel_liters=trip.actual_fuel or 0,
        consumption=trip.consumption_per_100 or 0,
        fuel_cost=trip.fuel_amount or 0,
        total_cost=aggregates.trip_total_cost(trip),
        status=trip.status,
        alerts=aggregates.trip_alerts(trip),
    )


def trips_frame(trips) -> pd.DataFrame:
    frame = pd.DataFrame([{
        'driver_id': t.driver_id,
        'last_name': t.driver.last_name if t.driver else "",
        'first_name': t.driver.first_name if t.driver else "",
        'vehicle_id': t.vehicle_id,
        'plate_number': t.vehicle.plate_number if t.vehicle else "",
        'make': (t.vehicle.make if t.vehicle else None) or "",
        'model': (t.vehicle.model if t.vehicle else None) or "",
        'distance': t.distance or 0,
        'consumption': t.consumption_per_100,
        'fuel_cost': t.fuel_amount or 0,
        'total_cost': aggregates.trip_total_cost(t),
        'containers': t.container_count,
        'alert': bool(aggregates.trip_alerts(t)),
    } for t in trips])
    if not frame.empty:
        frame['consumption'] = pd.to_numeric(frame['consumption'], errors='coerce')
    return frame


def rank_drivers(frame: pd.DataFrame) -> List[DriverPerformance]:
    if frame.empty:
        return []
    ranking = []
    for driver_id, group in frame.groupby('driver_id'):
        total_trips = len(group)
        total_km = float(group['distance'].sum())
        total_cost = float(group['total_cost'].sum())
        average = group['consumption'].mean()
        average = 0.0 if pd.isna(average) else float(average)
        cost_per_km = total_cost / total_km if total_km > 0 else 0.0
        ranking.append(DriverPerformance(
            id=int(driver_id),
            last_name=group['last_name'].iloc[0],
            first_name=group['first_name'].iloc[0],
            total_trips=total_trips,
            total_containers=int(group['containers'].sum()),
            total_km=total_km,
            average_consumption=round(average, 2),
            total_cost=total_cost,
            efficiency=driver_efficiency(average, cost_per_km, total_trips),
        ))
    return sorted(ranking, key=lambda d: d.efficiency, reverse=True)


def rank_vehicles(frame: pd.DataFrame) -> List[VehiclePerformance]:
    if frame.empty:
        return []
    ranking = []
    for vehicle_id, group in frame.groupby('vehicle_id'):
        total_trips = len(group)
        total_km = float(group['distance'].sum())
        fuel_cost = float(group['fuel_cost'].sum())
        alerts = int(group['alert'].sum())
        average = group['consumption'].mean()
        average = 0.0 if pd.isna(average) else float(average)
        fuel_cost_per_km = fuel_cost / total_km if total_km > 0 else 0.0
        ranking.append(VehiclePerformance(
            id=int(vehicle_id),
            plate_number=group['plate_number'].iloc[0],
            make=group['make'].iloc[0],
            model=group['model'].iloc[0],
            total_trips=total_trips,
            total_km=total_km,
            average_consumption=round(average, 2),
            total_fuel_cost=fuel_cost,
            maintenance_alerts=alerts,
            efficiency=vehicle_efficiency(average, fuel_cost_per_km, total_trips, alerts),
        ))
    return sorted(ranking, key=lambda v: v.efficiency, reverse=True)


class ReportService:
    def __init__(self, session=None):
        self.session = session or db.session
        self.translator = QueryTranslator(self.session)

    # Data access

    def _trips(self, date_from, date_to, **filters):
        filters.update({'date_from': date_from, 'date_to': date_to})
        return self.translator.fetch_all(TRIP_LISTING, filters)

    def _missions(self, date_from, date_to):
        missions = self.translator.fetch_all(
            MISSION_LISTING, {'date_from': date_from, 'date_to': date_to}, sort_by='mission_date'
        )
        return [m for m in missions if m.status != MissionStatus.CANCELLED.value]

    def report_trips(self, date_from, date_to, driver_id=None, vehicle_id=None, destination_id=None) -> List[ReportTrip]:
        trips = self._trips(
            date_from, date_to,
            driver_id=driver_id, vehicle_id=vehicle_id, destination_id=destination_id,
        )
        return [to_report_trip(t) for t in trips]

    # Sections

    def executive_summary(self, date_from, date_to, trips=None) -> ExecutiveSummary:
        trips = self._trips(date_from, date_to) if trips is None else trips
        previous = self._trips(*previous_period(date_from, date_to))

        current = aggregates.trip_totals(trips)
        before = aggregates.trip_totals(previous)
        average = _mean([t.consumption_per_100 for t in trips])
        previous_average = _mean([t.consumption_per_100 for t in previous])

        kpis = ExecutiveKpis(
            total_trips=current.trips,
            trips_change=aggregates.period_change(current.trips, before.trips),
            total_containers=current.containers,
            containers_change=aggregates.period_change(current.containers, before.containers),
            total_fuel_cost=current.fuel_cost,
            fuel_cost_change=aggregates.period_change(current.fuel_cost, before.fuel_cost),
            total_other_costs=current.total_cost - current.fuel_cost,
            total_cost=current.total_cost,
            cost_change=aggregates.period_change(current.total_cost, before.total_cost),
            average_consumption=round(average, 2),
            consumption_trend=aggregates.trend(average, previous_average, CONSUMPTION_TREND_THRESHOLD),
            active_alerts=sum(1 for t in trips if aggregates.trip_alerts(t)),
        )

        highlights = []
        if abs(kpis.trips_change) > 10:
            direction = "up" if kpis.trips_change > 0 else "down"
            highlights.append(f"Trips {direction} {abs(kpis.trips_change):.1f}%")
        if abs(kpis.fuel_cost_change) > 15:
            direction = "up" if kpis.fuel_cost_change > 0 else "down"
            highlights.append(f"Fuel cost {direction} {abs(kpis.fuel_cost_change):.1f}%")
        if kpis.active_alerts > 5:
            highlights.append(f"{kpis.active_alerts} active alerts need attention")
        if kpis.consumption_trend == "up":
            highlights.append("Average consumption rising, review recommended")
        elif kpis.consumption_trend == "down":
            highlights.append("Average consumption improving")

        return ExecutiveSummary(
            period_from=date_from,
            period_to=date_to,
            label=_period_label(date_from, date_to),
            kpis=kpis,
            highlights=highlights,
        )

    def fleet_rankings(self, trips):
        frame = trips_frame(trips)
        return rank_drivers(frame), rank_vehicles(frame)

    def fleet_performance(self, date_from, date_to, trips=None) -> FleetPerformance:
        trips = self._trips(date_from, date_to) if trips is None else trips
        drivers, vehicles = self.fleet_rankings(trips)
        return self._fleet_performance(trips, drivers, vehicles)

    def _fleet_performance(self, trips, drivers, vehicles) -> FleetPerformance:
        metrics = AverageMetrics(
            trips_per_driver=_mean([d.total_trips for d in drivers]),
            containers_per_driver=_mean([d.total_containers for d in drivers]),
            consumption_per_vehicle=round(_mean([v.average_consumption for v in vehicles]), 2),
            cost_per_trip=_mean([aggregates.trip_total_cost(t) for t in trips]),
        )
        return FleetPerformance(
            top_drivers=drivers[:TOP_COUNT],
            bottom_drivers=list(reversed(drivers[-BOTTOM_COUNT:])),
            top_vehicles=vehicles[:TOP_COUNT],
            bottom_vehicles=list(reversed(vehicles[-BOTTOM_COUNT:])),
            average_metrics=metrics,
        )

    def financial_analysis(self, date_from, date_to, trips=None, missions=None) -> FinancialAnalysis:
        trips = self._trips(date_from, date_to) if trips is None else trips
        missions = self._missions(date_from, date_to) if missions is None else missions

        totals = aggregates.trip_totals(trips)
        subcontracting = sum(m.total_amount or 0 for m in missions)
        total = totals.fuel_cost + totals.toll_cost + totals.other_costs + subcontracting
        total_costs = TotalCosts(
            fuel=totals.fuel_cost,
            tolls=totals.toll_cost,
            other=totals.other_costs,
            subcontracting=subcontracting,
            total=total,
        )
        categories = [
            CostCategory(category=name, amount=amount, percentage=round(amount / total * 100, 1) if total else 0)
            for name, amount in (
                ("Fuel", totals.fuel_cost),
                ("Tolls", totals.toll_cost),
                ("Other costs", totals.other_costs),
                ("Subcontracting", subcontracting),
            )
        ]

        months = {}
        for trip in trips:
            entry = months.setdefault(month_key(trip.trip_date), MonthlyCost(month=month_key(trip.trip_date)))
            entry.fuel += trip.fuel_amount or 0
            entry.tolls += trip.toll_cost or 0
            entry.other += trip.other_costs or 0
            entry.total += (trip.fuel_amount or 0) + (trip.toll_cost or 0) + (trip.other_costs or 0)
        for mission in missions:
            entry = months.setdefault(month_key(mission.mission_date), MonthlyCost(month=month_key(mission.mission_date)))
            entry.subcontracting += mission.total_amount or 0
            entry.total += mission.total_amount or 0

        destinations = OrderedDict()
        for trip in trips:
            name = trip.destination.name if trip.destination else "Unknown"
            entry = destinations.setdefault(name, DestinationCost(destination=name))
            entry.trips += 1
            entry.total_cost += aggregates.trip_total_cost(trip)
            entry.containers += trip.container_count
        for entry in destinations.values():
            entry.average_cost = entry.total_cost / entry.trips if entry.trips else 0
        by_destination = sorted(destinations.values(), key=lambda d: d.total_cost, reverse=True)[:TOP_DESTINATIONS]

        averages = FinancialAverages(
            fuel_price_per_liter=totals.fuel_cost / totals.fuel_liters if totals.fuel_liters else 0,
            cost_per_km=total / totals.total_km if totals.total_km else 0,
            cost_per_trip=total / totals.trips if totals.trips else 0,
            cost_per_container=total / totals.containers if totals.containers else 0,
        )

        # First half of the period against the second half
        midpoint = date_from + (date_to - date_from) / 2
        first = [t for t in trips if t.trip_date < midpoint]
        second = [t for t in trips if t.trip_date >= midpoint]
        trends = FinancialTrends(
            fuel_cost_trend=aggregates.trend(
                sum(t.fuel_amount or 0 for t in second), sum(t.fuel_amount or 0 for t in first), COST_TREND_THRESHOLD
            ),
            total_cost_trend=aggregates.trend(
                sum(aggregates.trip_total_cost(t) for t in second),
                sum(aggregates.trip_total_cost(t) for t in first),
                COST_TREND_THRESHOLD,
            ),
        )

        return FinancialAnalysis(
            total_costs=total_costs,
            costs_by_category=categories,
            costs_by_month=[months[k] for k in sorted(months)],
            costs_by_destination=by_destination,
            averages=averages,
            trends=trends,
        )

    # Reports

    def monthly_report(self, filters: ReportFilters) -> MonthlyReport:
        trips = self._trips(filters.date_from, filters.date_to)
        return MonthlyReport(
            filters=filters,
            executive_summary=self.executive_summary(filters.date_from, filters.date_to, trips),
            fleet_performance=self.fleet_performance(filters.date_from, filters.date_to, trips),
            financial_analysis=self.financial_analysis(filters.date_from, filters.date_to, trips),
            detailed_trips=[to_report_trip(t) for t in trips] if filters.include_tables else None,
            generated_at=utc_now(),
        )

    def driver_report(self, filters: ReportFilters) -> DriverReport:
        driver = DriverService(self.session).get_by_id(filters.driver_id)
        if not driver:
            raise NotFoundError("Driver not found")

        fleet_trips = self._trips(filters.date_from, filters.date_to)
        drivers, vehicles = self.fleet_rankings(fleet_trips)
        fleet = self._fleet_performance(fleet_trips, drivers, vehicles)
        trips = [to_report_trip(t) for t in fleet_trips if t.driver_id == driver.id]

        position = next((i for i, d in enumerate(drivers) if d.id == driver.id), None)
        performance = drivers[position] if position is not None else DriverPerformance(
            id=driver.id, last_name=driver.last_name, first_name=driver.first_name
        )

        statistics = DriverStatistics(
            total_trips=len(trips),
            total_km=sum(t.km for t in trips),
            total_containers=sum(t.containers for t in trips),
            average_consumption=round(_mean([t.consumption for t in trips]), 2),
            total_cost=sum(t.total_cost for t in trips),
            trips_with_alerts=sum(1 for t in trips if t.alerts),
        )
        metrics = fleet.average_metrics
        comparison = Comparison(
            vs_average_consumption=_relative(statistics.average_consumption, metrics.consumption_per_vehicle),
            vs_average_cost=_relative(
                statistics.total_cost / statistics.total_trips, metrics.cost_per_trip
            ) if statistics.total_trips else 0,
            ranking=position + 1 if position is not None else 0,
            total=len(drivers),
        )

        return DriverReport(
            filters=filters,
            driver=DriverInfo(
                id=driver.id,
                last_name=driver.last_name,
                first_name=driver.first_name,
                phone=driver.phone or "",
                hire_date=driver.hire_date,
            ),
            performance=performance,
            trips=trips,
            statistics=statistics,
            comparison=comparison,
            generated_at=utc_now(),
        )

    def vehicle_report(self, filters: ReportFilters) -> VehicleReport:
        vehicle = VehicleService(self.session).get_by_id(filters.vehicle_id)
        if not vehicle:
            raise NotFoundError("Vehicle not found")

        fleet_trips = self._trips(filters.date_from, filters.date_to)
        drivers, vehicles = self.fleet_rankings(fleet_trips)
        fleet = self._fleet_performance(fleet_trips, drivers, vehicles)
        trips = [to_report_trip(t) for t in fleet_trips if t.vehicle_id == vehicle.id]

        position = next((i for i, v in enumerate(vehicles) if v.id == vehicle.id), None)
        performance = vehicles[position] if position is not None else VehiclePerformance(
            id=vehicle.id, plate_number=vehicle.plate_number, make=vehicle.make or "", model=vehicle.model or ""
        )

        statistics = VehicleStatistics(
            total_trips=len(trips),
            total_km=sum(t.km for t in trips),
            average_consumption=round(_mean([t.consumption for t in trips]), 2),
            total_fuel_cost=sum(t.fuel_cost for t in trips),
        )
        metrics = fleet.average_metrics
        comparison = Comparison(
            vs_average_consumption=_relative(statistics.average_consumption, metrics.consumption_per_vehicle),
            vs_average_cost=_relative(
                statistics.total_fuel_cost / statistics.total_trips, metrics.cost_per_trip
            ) if statistics.total_trips else 0,
            ranking=position + 1 if position is not None else 0,
            total=len(vehicles),
        )
        odometer = vehicle.odometer or 0
        alerts = VehicleAlerts(
            maintenance_needed=odometer > MAINTENANCE_ODOMETER,
            abnormal_consumption=(
                metrics.consumption_per_vehicle > 0
                and statistics.average_consumption > metrics.consumption_per_vehicle * ABNORMAL_CONSUMPTION_RATIO
            ),
            high_mileage=odometer > HIGH_MILEAGE_ODOMETER,
        )

        return VehicleReport(
            filters=filters,
            vehicle=VehicleInfo(
                id=vehicle.id,
                plate_number=vehicle.plate_number,
                make=vehicle.make or "",
                model=vehicle.model or "",
                year=vehicle.year,
                fuel_type=vehicle.fuel_type or "",
                odometer=odometer,
            ),
            performance=performance,
            trips=trips,
            statistics=statistics,
            comparison=comparison,
            alerts=alerts,
            generated_at=utc_now(),
        )

    def destination_report(self, filters: ReportFilters) -> DestinationReport:
        location = ReferenceService(self.session).get_location(filters.destination_id)
        if not location:
            raise NotFoundError("Destination not found")

        trips = self.report_trips(filters.date_from, filters.date_to, destination_id=location.id)
        total_cost = sum(t.total_cost for t in trips)
        statistics = DestinationStatistics(
            total_trips=len(trips),
            total_containers=sum(t.containers for t in trips),
            total_km=sum(t.km for t in trips),
            average_cost=total_cost / len(trips) if trips else 0,
            total_cost=total_cost,
        )

        trip_counts, cost_sums = {}, {}
        # Keyed by id; display names are not unique
        driver_counts, vehicle_counts = {}, {}
        driver_names, vehicle_plates = {}, {}
        for trip in trips:
            key = month_key(trip.date)
            trip_counts[key] = trip_counts.get(key, 0) + 1
            cost_sums[key] = cost_sums.get(key, 0) + trip.total_cost
            driver_counts[trip.driver_id] = driver_counts.get(trip.driver_id, 0) + 1
            driver_names[trip.driver_id] = trip.driver
            vehicle_counts[trip.vehicle_id] = vehicle_counts.get(trip.vehicle_id, 0) + 1
            vehicle_plates[trip.vehicle_id] = trip.vehicle

        trends = DestinationTrends()
        if filters.include_graphs:
            trends = DestinationTrends(
                trips_per_month=[MonthCount(month=k, count=trip_counts[k]) for k in sorted(trip_counts)],
                costs_per_month=[MonthAmount(month=k, cost=cost_sums[k]) for k in sorted(cost_sums)],
            )
        top_drivers = sorted(driver_counts.items(), key=lambda item: item[1], reverse=True)[:TOP_COUNT]
        top_vehicles = sorted(vehicle_counts.items(), key=lambda item: item[1], reverse=True)[:TOP_COUNT]

        return DestinationReport(
            filters=filters,
            destination=DestinationInfo(id=location.id, name=location.name, region=location.region or ""),
            statistics=statistics,
            trips=trips,
            trends=trends,
            top_drivers=[
                TopDriver(id=driver_id, name=driver_names[driver_id], trips=count)
                for driver_id, count in top_drivers
            ],
            top_vehicles=[
                TopVehicle(id=vehicle_id, plate_number=vehicle_plates[vehicle_id], trips=count)
                for vehicle_id, count in top_vehicles
            ],
            generated_at=utc_now(),
        )

    def financial_report(self, filters: ReportFilters) -> FinancialReport:
        trips = self._trips(filters.date_from, filters.date_to)
        missions = self._missions(filters.date_from, filters.date_to)
        analysis = self.financial_analysis(filters.date_from, filters.date_to, trips, missions)

        mission_lines = [
            MissionCostLine(
                id=m.id,
                date=m.mission_date,
                subcontractor=m.subcontractor.company_name if m.subcontractor else "",
                cost=m.total_amount or 0,
                advance_paid=bool(m.advance_paid),
                balance_paid=bool(m.balance_paid),
                payment_status=m.payment_status,
                remaining=(m.total_amount or 0) - aggregates.paid_amount(m),
            )
            for m in missions
        ]

        return FinancialReport(
            filters=filters,
            financial_analysis=analysis,
            detailed_costs=DetailedCosts(
                trips=[to_report_trip(t) for t in trips] if filters.include_tables else [],
                subcontracting_missions=mission_lines if filters.include_tables else [],
            ),
            projections=self._projection(filters.date_from, filters.date_to, analysis),
            generated_at=utc_now(),
        )

    def _projection(self, date_from, date_to, analysis: FinancialAnalysis) -> Optional[Projection]:
        days = (date_to - date_from).days + 1
        if analysis.total_costs.total <= 0 or days <= 0:
            return None
        trend = analysis.trends.total_cost_trend
        estimate = round(analysis.total_costs.total / days * 30, 2)
        if trend == "up":
            recommendation = "Costs are rising; review fuel purchases and subcontracting volume."
        elif trend == "down":
            recommendation = "Costs are falling; keep the current operating plan."
        else:
            recommendation = "Costs are stable."
        return Projection(next_month_estimate=estimate, trend=trend, recommendation=recommendation)

    def build(self, filters: ReportFilters):
        logging.info(f"Generating {filters.report_type} report for {filters.date_from} to {filters.date_to}")
        builders = {
            'monthly': self.monthly_report,
            'driver': self.driver_report,
            'vehicle': self.vehicle_report,
            'destination': self.destination_report,
            'financial': self.financial_report,
        }
        return builders[filters.report_type](filters)

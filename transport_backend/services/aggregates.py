"""
Aggregate statistics over in-memory rows.

Every function here is pure: rows go in, typed results come out, nothing is
read from or written to storage. Rows may be ORM instances or plain dicts.
"""

from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Iterable, List, Optional, Union

from transport_backend.models.mission import MissionStatus, PaymentStatus
from transport_backend.services.view_models import (
    Alert,
    DistributionEntry,
    DriverConsumptionRank,
    DriverContainerRank,
    EntityTripStats,
    FinancialRollup,
    MaintenanceAlert,
    MissionsFinancialSummary,
    MonthlyPerformance,
    SeriesPoint,
    TripTotals,
    VehicleConsumption,
    VehicleConsumptionRank,
)
from transport_backend.utils.timezone_utils import month_key

Key = Union[str, Callable[[Any], Any]]

# Trip-level alert thresholds
FUEL_VARIANCE_ALERT = 10
FUEL_VARIANCE_CRITICAL = 20
CONSUMPTION_ALERT = 50

# A trip is abnormal above this multiple of its vehicle's recent average
ABNORMAL_CONSUMPTION_RATIO = 1.3
CONSUMPTION_SAMPLE_SIZE = 10
MIN_TRIPS_FOR_AVERAGE = 3
MIN_TRIPS_FOR_MAINTENANCE = 5
HIGH_MILEAGE_ALERT = 500000

# Days since the mission date
PAYMENT_CRITICAL_DAYS = 30
PAYMENT_WARNING_DAYS = 15


def _value(row, key: Key):
    if callable(key):
        return key(row)
    if isinstance(row, dict):
        return row.get(key)
    return getattr(row, key, None)


def _num(value) -> float:
    return float(value) if value is not None else 0.0


def _as_day(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        return date.fromisoformat(value[:10])
    return None


def _containers(trip) -> int:
    count = _value(trip, 'container_count')
    if count is not None:
        return int(count)
    return sum(int(_value(c, 'quantity') or 0) for c in (_value(trip, 'containers') or []))


def payment_status(advance_paid: bool, balance_paid: bool) -> str:
    if advance_paid and balance_paid:
        return PaymentStatus.COMPLETE.value
    if advance_paid or balance_paid:
        return PaymentStatus.PARTIAL.value
    return PaymentStatus.PENDING.value


def paid_amount(mission) -> float:
    paid = 0.0
    if _value(mission, 'advance_paid'):
        paid += _num(_value(mission, 'advance_amount'))
    if _value(mission, 'balance_paid'):
        paid += _num(_value(mission, 'balance_amount'))
    return paid


def _rollup_fields(missions) -> dict:
    fields = {
        'total_missions': 0,
        'ongoing': 0,
        'completed': 0,
        'cancelled': 0,
        'total_amount': 0.0,
        'paid_amount': 0.0,
    }
    for mission in missions:
        fields['total_missions'] += 1
        status = _value(mission, 'status')
        if status in (MissionStatus.ONGOING.value, MissionStatus.COMPLETED.value, MissionStatus.CANCELLED.value):
            fields[status] += 1
        fields['total_amount'] += _num(_value(mission, 'total_amount'))
        fields['paid_amount'] += paid_amount(mission)
    fields['remaining_amount'] = fields['total_amount'] - fields['paid_amount']
    return fields


def financial_rollup(missions: Iterable) -> FinancialRollup:
    """Totals for a subcontractor's missions; an empty list yields all zeros."""
    return FinancialRollup(**_rollup_fields(list(missions)))


def missions_financial_summary(missions: Iterable) -> MissionsFinancialSummary:
    missions = list(missions)
    awaiting = sum(
        1 for m in missions
        if _value(m, 'status') == MissionStatus.COMPLETED.value
        and payment_status(_value(m, 'advance_paid'), _value(m, 'balance_paid')) != PaymentStatus.COMPLETE.value
    )
    return MissionsFinancialSummary(awaiting_payment=awaiting, **_rollup_fields(missions))


def vehicle_consumption_ranking(trips: Iterable, limit: int = 10) -> List[VehicleConsumption]:
    """
    Average consumption per 100 km for each vehicle, highest first.
    Trips without a consumption figure or a distance are ignored.
    """
    buckets = OrderedDict()
    for trip in trips:
        consumption = _value(trip, 'consumption_per_100')
        distance = _value(trip, 'distance')
        vehicle_id = _value(trip, 'vehicle_id')
        if consumption is None or distance is None or vehicle_id is None:
            continue
        bucket = buckets.get(vehicle_id)
        if bucket is None:
            vehicle = _value(trip, 'vehicle')
            bucket = buckets[vehicle_id] = {
                'vehicle_id': vehicle_id,
                'plate_number': (_value(vehicle, 'plate_number') if vehicle is not None else None) or "",
                'make': (_value(vehicle, 'make') if vehicle is not None else None) or "",
                'model': (_value(vehicle, 'model') if vehicle is not None else None) or "",
                'consumption_sum': 0.0,
                'trips': 0,
                'total_km': 0.0,
            }
        bucket['consumption_sum'] += float(consumption)
        bucket['trips'] += 1
        bucket['total_km'] += float(distance)

    ranking = []
    for bucket in buckets.values():
        consumption_sum = bucket.pop('consumption_sum')
        ranking.append(VehicleConsumption(
            average_consumption=round(consumption_sum / bucket['trips'], 2),
            **bucket,
        ))
    ranking.sort(key=lambda v: v.average_consumption, reverse=True)
    if limit is not None:
        ranking = ranking[:max(0, limit)]
    return ranking


def distribution(rows: Iterable, key: Key, weight: Optional[Key] = None) -> List[DistributionEntry]:
    """
    Count (or weight) per category with its percentage share.
    Percentages are rounded to one decimal; a zero total yields an empty list.
    """
    counts = OrderedDict()
    for row in rows:
        group = _value(row, key)
        group = "unknown" if group is None else str(getattr(group, 'value', group))
        amount = 1 if weight is None else (_value(row, weight) or 0)
        counts[group] = counts.get(group, 0) + amount

    total = sum(counts.values())
    if not total:
        return []

    entries = [
        DistributionEntry(key=group, count=count, percentage=round(100 * count / total, 1))
        for group, count in counts.items()
    ]
    entries.sort(key=lambda e: e.count, reverse=True)
    return entries


def daily_series(rows: Iterable, date_key: Key, value: Optional[Key] = None) -> List[SeriesPoint]:
    """
    Count (or sum of value) per calendar day, ascending.
    Only days holding at least one row appear; see zero_fill for gaps.
    """
    buckets = {}
    for row in rows:
        day = _as_day(_value(row, date_key))
        if day is None:
            continue
        amount = 1 if value is None else _num(_value(row, value))
        buckets[day] = buckets.get(day, 0) + amount
    return [SeriesPoint(day=day, value=buckets[day]) for day in sorted(buckets)]


def zero_fill(series: List[SeriesPoint], start: date, end: date) -> List[SeriesPoint]:
    """Continuous series from start to end inclusive, missing days at zero."""
    by_day = {point.day: point.value for point in series}
    filled = []
    day = start
    while day <= end:
        filled.append(SeriesPoint(day=day, value=by_day.get(day, 0)))
        day += timedelta(days=1)
    return filled


def trip_total_cost(trip) -> float:
    total = _value(trip, 'total_cost')
    if total is not None:
        return float(total)
    return _num(_value(trip, 'fuel_amount')) + _num(_value(trip, 'toll_cost')) + _num(_value(trip, 'other_costs'))


def trip_alerts(trip) -> List[str]:
    alerts = []
    if abs(_num(_value(trip, 'fuel_variance'))) > FUEL_VARIANCE_ALERT:
        alerts.append("Fuel variance above 10 L")
    if _num(_value(trip, 'consumption_per_100')) > CONSUMPTION_ALERT:
        alerts.append("Abnormal consumption")
    return alerts


def _average_consumption(trips) -> Optional[float]:
    values = [float(c) for c in (_value(t, 'consumption_per_100') for t in trips) if c is not None]
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def trip_totals(trips: Iterable) -> TripTotals:
    trips = list(trips)
    total_km = sum(_num(_value(t, 'distance')) for t in trips)
    fuel_liters = sum(_num(_value(t, 'actual_fuel')) for t in trips)
    return TripTotals(
        trips=len(trips),
        containers=sum(_containers(t) for t in trips),
        total_km=total_km,
        fuel_liters=fuel_liters,
        fuel_cost=sum(_num(_value(t, 'fuel_amount')) for t in trips),
        toll_cost=sum(_num(_value(t, 'toll_cost')) for t in trips),
        other_costs=sum(_num(_value(t, 'other_costs')) for t in trips),
        total_cost=sum(trip_total_cost(t) for t in trips),
        average_consumption=round(fuel_liters / total_km * 100, 2) if total_km > 0 else 0,
    )


def entity_trip_stats(trips: Iterable) -> EntityTripStats:
    """Per-driver or per-vehicle trip statistics."""
    trips = list(trips)
    return EntityTripStats(
        trip_count=len(trips),
        total_km=sum(_num(_value(t, 'distance')) for t in trips),
        total_containers=sum(_containers(t) for t in trips),
        average_consumption=_average_consumption(trips),
        fuel_cost=sum(_num(_value(t, 'fuel_amount')) for t in trips),
        fees_total=sum(_num(_value(t, 'toll_cost')) + _num(_value(t, 'other_costs')) for t in trips),
    )


def period_change(current, previous) -> float:
    """Percentage change against the previous period, 0 when there is no baseline."""
    current, previous = _num(current), _num(previous)
    if previous <= 0:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def trend(current, previous, threshold: float = 5.0) -> str:
    current, previous = _num(current), _num(previous)
    if previous <= 0:
        return "stable"
    change = (current - previous) / previous * 100
    if change > threshold:
        return "up"
    if change < -threshold:
        return "down"
    return "stable"


# Alert feed

def _as_datetime(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    day = _as_day(value)
    return datetime.combine(day, time.min) if day else None


def _recency(row):
    """Sort key: trip or mission date, then creation time, then id."""
    day = _as_day(_value(row, 'trip_date')) or _as_day(_value(row, 'mission_date')) or date.min
    created = _as_datetime(_value(row, 'created_at')) or datetime.min
    return day, created, _value(row, 'id') or 0


def _newest_first(rows) -> list:
    return sorted(rows, key=_recency, reverse=True)


def _alert_time(row) -> datetime:
    return (
        _as_datetime(_value(row, 'created_at'))
        or _as_datetime(_value(row, 'trip_date'))
        or _as_datetime(_value(row, 'mission_date'))
        or datetime.min
    )


def _driver_name(driver) -> str:
    if driver is None:
        return ""
    return _value(driver, 'full_name') or " ".join(
        part for part in (_value(driver, 'first_name'), _value(driver, 'last_name')) if part
    )


def _status_text(status) -> str:
    return str(getattr(status, 'value', status) or "")


def fuel_variance_alerts(trips: Iterable, limit: int = 5) -> List[Alert]:
    """Trips whose purchased fuel is more than 10 L off plan, newest first."""
    flagged = [t for t in trips if abs(_num(_value(t, 'fuel_variance'))) > FUEL_VARIANCE_ALERT]
    alerts = []
    for trip in _newest_first(flagged)[:max(0, limit)]:
        variance = _num(_value(trip, 'fuel_variance'))
        plate = _value(_value(trip, 'vehicle'), 'plate_number') or "N/A"
        driver = _driver_name(_value(trip, 'driver')) or "N/A"
        alerts.append(Alert(
            id=f"fuel-variance-{_value(trip, 'id')}",
            type="fuel_variance",
            severity="critical" if abs(variance) > FUEL_VARIANCE_CRITICAL else "warning",
            title=f"Fuel variance detected: {abs(variance):.1f} L",
            description=(
                f"Vehicle {plate} driven by {driver} shows a gap of {abs(variance):.1f} L "
                f"between planned and purchased fuel."
            ),
            date=_alert_time(trip),
            data={
                'trip_id': _value(trip, 'id'),
                'driver': driver,
                'vehicle': plate,
                'planned_liters': _num(_value(trip, 'planned_fuel')),
                'actual_liters': _num(_value(trip, 'actual_fuel')),
                'variance': variance,
            },
        ))
    return alerts


def abnormal_consumption_alerts(trips: Iterable, limit: int = 5) -> List[Alert]:
    """
    Trips consuming more than 1.3x their vehicle's average.

    The average is taken over the vehicle's ten most recent trips that carry a
    consumption figure; vehicles with fewer than three such trips are skipped.
    At most two trips are reported per vehicle.
    """
    by_vehicle = OrderedDict()
    for trip in trips:
        if _value(trip, 'consumption_per_100') is None or _value(trip, 'vehicle_id') is None:
            continue
        by_vehicle.setdefault(_value(trip, 'vehicle_id'), []).append(trip)

    alerts = []
    for vehicle_trips in by_vehicle.values():
        vehicle_trips = _newest_first(vehicle_trips)
        sample = vehicle_trips[:CONSUMPTION_SAMPLE_SIZE]
        if len(sample) < MIN_TRIPS_FOR_AVERAGE:
            continue
        average = sum(float(_value(t, 'consumption_per_100')) for t in sample) / len(sample)
        if average <= 0:
            continue
        abnormal = [
            t for t in vehicle_trips
            if float(_value(t, 'consumption_per_100')) > average * ABNORMAL_CONSUMPTION_RATIO
        ][:2]
        for trip in abnormal:
            consumption = float(_value(trip, 'consumption_per_100'))
            above = (consumption - average) / average * 100
            plate = _value(_value(trip, 'vehicle'), 'plate_number') or "N/A"
            alerts.append(Alert(
                id=f"abnormal-consumption-{_value(trip, 'id')}",
                type="abnormal_consumption",
                severity="critical" if above > 50 else "warning",
                title=f"Abnormal consumption: {consumption:.2f} L/100 km",
                description=(
                    f"Vehicle {plate} used {consumption:.2f} L/100 km, {above:.0f}% above "
                    f"its average of {average:.2f} L/100 km."
                ),
                date=_alert_time(trip),
                data={
                    'trip_id': _value(trip, 'id'),
                    'vehicle': plate,
                    'consumption': consumption,
                    'average_consumption': round(average, 2),
                    'percentage_above': round(above, 1),
                },
            ))
        if len(alerts) >= limit:
            break
    return alerts[:max(0, limit)]


def awaiting_balance(mission) -> bool:
    """The 10% balance is still owed on a mission that was not cancelled."""
    return (
        not _value(mission, 'balance_paid')
        and _num(_value(mission, 'balance_amount')) > 0
        and _value(mission, 'status') != MissionStatus.CANCELLED.value
    )


def payment_severity(days_overdue: int) -> str:
    if days_overdue > PAYMENT_CRITICAL_DAYS:
        return "critical"
    if days_overdue > PAYMENT_WARNING_DAYS:
        return "warning"
    return "info"


def pending_payment_alerts(missions: Iterable, today: date, limit: int = 5) -> List[Alert]:
    """Missions still owing their balance, oldest mission first."""
    pending = sorted(
        (m for m in missions if awaiting_balance(m)),
        key=lambda m: (_as_day(_value(m, 'mission_date')) or date.max, _value(m, 'id') or 0),
    )
    alerts = []
    for mission in pending[:max(0, limit)]:
        mission_day = _as_day(_value(mission, 'mission_date'))
        days = (today - mission_day).days if mission_day else 0
        company = _value(_value(mission, 'subcontractor'), 'company_name') or "Unknown subcontractor"
        remaining = _num(_value(mission, 'balance_amount'))
        alerts.append(Alert(
            id=f"pending-payment-{_value(mission, 'id')}",
            type="pending_payment",
            severity=payment_severity(days),
            title="Balance payment pending",
            description=f"The balance of {remaining:.0f} owed to {company} has been pending for {days} days.",
            date=_alert_time(mission),
            data={
                'mission_id': _value(mission, 'id'),
                'subcontractor': company,
                'remaining_amount': remaining,
                'days_overdue': days,
            },
        ))
    return alerts


def merge_alerts(*groups: List[Alert], limit: int = 10) -> List[Alert]:
    merged = [alert for group in groups for alert in group]
    merged.sort(key=lambda a: a.date, reverse=True)
    return merged[:max(0, limit)]


# Rankings

def driver_container_ranking(trips: Iterable, limit: int = 10) -> List[DriverContainerRank]:
    """Drivers by containers moved, most first."""
    buckets = OrderedDict()
    for trip in trips:
        driver, driver_id = _value(trip, 'driver'), _value(trip, 'driver_id')
        if driver is None or driver_id is None:
            continue
        bucket = buckets.setdefault(driver_id, {'driver': driver, 'containers': 0})
        bucket['containers'] += _containers(trip)

    ordered = sorted(buckets.items(), key=lambda item: item[1]['containers'], reverse=True)
    return [
        DriverContainerRank(
            rank=position,
            driver_id=driver_id,
            last_name=_value(bucket['driver'], 'last_name') or "",
            first_name=_value(bucket['driver'], 'first_name') or "",
            status=_status_text(_value(bucket['driver'], 'status')),
            containers=bucket['containers'],
        )
        for position, (driver_id, bucket) in enumerate(ordered[:max(0, limit)], start=1)
    ]


def _consumption_averages(trips, id_key: str, entity_key: str, min_trips: int) -> list:
    """(entity id, entity, average consumption, trip count) for entities with enough trips."""
    buckets = OrderedDict()
    for trip in trips:
        consumption = _value(trip, 'consumption_per_100')
        entity_id, entity = _value(trip, id_key), _value(trip, entity_key)
        if consumption is None or entity_id is None or entity is None:
            continue
        bucket = buckets.setdefault(entity_id, {'entity': entity, 'sum': 0.0, 'trips': 0})
        bucket['sum'] += float(consumption)
        bucket['trips'] += 1
    return [
        (entity_id, b['entity'], round(b['sum'] / b['trips'], 2), b['trips'])
        for entity_id, b in buckets.items()
        if b['trips'] >= min_trips
    ]


def economical_drivers(trips: Iterable, limit: int = 10,
                       min_trips: int = MIN_TRIPS_FOR_AVERAGE) -> List[DriverConsumptionRank]:
    """Drivers by average consumption, lowest first."""
    averages = sorted(_consumption_averages(trips, 'driver_id', 'driver', min_trips), key=lambda row: row[2])
    return [
        DriverConsumptionRank(
            rank=position,
            driver_id=driver_id,
            last_name=_value(driver, 'last_name') or "",
            first_name=_value(driver, 'first_name') or "",
            status=_status_text(_value(driver, 'status')),
            average_consumption=average,
            trips=count,
        )
        for position, (driver_id, driver, average, count) in enumerate(averages[:max(0, limit)], start=1)
    ]


def vehicle_consumption_leaders(trips: Iterable, limit: int = 10, most_efficient: bool = True,
                                min_trips: int = MIN_TRIPS_FOR_AVERAGE) -> List[VehicleConsumptionRank]:
    """
    Vehicles by average consumption: lowest first when most_efficient,
    otherwise the heaviest consumers first.
    """
    averages = sorted(
        _consumption_averages(trips, 'vehicle_id', 'vehicle', min_trips),
        key=lambda row: row[2],
        reverse=not most_efficient,
    )
    return [
        VehicleConsumptionRank(
            rank=position,
            vehicle_id=vehicle_id,
            plate_number=_value(vehicle, 'plate_number') or "",
            make=_value(vehicle, 'make') or "",
            model=_value(vehicle, 'model') or "",
            fuel_type=_status_text(_value(vehicle, 'fuel_type')),
            status=_status_text(_value(vehicle, 'status')),
            average_consumption=average,
            trips=count,
        )
        for position, (vehicle_id, vehicle, average, count) in enumerate(averages[:max(0, limit)], start=1)
    ]


# Evolution and maintenance

def evolution_start(today: date, months: int) -> date:
    """First day of the window covering the current month and the months - 1 before it."""
    index = today.year * 12 + today.month - 1 - (max(1, months) - 1)
    return date(index // 12, index % 12 + 1, 1)


def monthly_evolution(trips: Iterable) -> List[MonthlyPerformance]:
    buckets = {}
    for trip in trips:
        day = _as_day(_value(trip, 'trip_date'))
        if day is None:
            continue
        bucket = buckets.setdefault(month_key(day), {
            'trips': 0, 'total_km': 0.0, 'containers': 0, 'total_cost': 0.0,
            'consumption_sum': 0.0, 'consumption_count': 0,
        })
        bucket['trips'] += 1
        bucket['total_km'] += _num(_value(trip, 'distance'))
        bucket['containers'] += _containers(trip)
        bucket['total_cost'] += trip_total_cost(trip)
        consumption = _value(trip, 'consumption_per_100')
        if consumption is not None:
            bucket['consumption_sum'] += float(consumption)
            bucket['consumption_count'] += 1

    evolution = []
    for key in sorted(buckets):
        bucket = buckets[key]
        count = bucket.pop('consumption_count')
        consumption_sum = bucket.pop('consumption_sum')
        evolution.append(MonthlyPerformance(
            month=key,
            average_consumption=round(consumption_sum / count, 2) if count else 0,
            **bucket,
        ))
    return evolution


def vehicle_maintenance_alerts(vehicle, trips: Iterable) -> List[MaintenanceAlert]:
    """Checks over the odometer and the vehicle's ten most recent trips."""
    alerts = []
    odometer = int(_num(_value(vehicle, 'odometer')))
    if odometer > HIGH_MILEAGE_ALERT:
        alerts.append(MaintenanceAlert(
            type="mileage",
            message=f"High mileage ({odometer:,} km), major service recommended",
            severity="warning",
        ))

    recent = _newest_first(trips)[:CONSUMPTION_SAMPLE_SIZE]
    values = [float(c) for c in (_value(t, 'consumption_per_100') for t in recent) if c is not None]
    if len(values) >= MIN_TRIPS_FOR_MAINTENANCE:
        average = sum(values) / len(values)
        if any(v > average * ABNORMAL_CONSUMPTION_RATIO for v in values):
            alerts.append(MaintenanceAlert(
                type="consumption",
                message="Abnormal consumption detected, check the engine and filters",
                severity="error",
            ))

    if any(abs(_num(_value(t, 'fuel_variance'))) > FUEL_VARIANCE_ALERT for t in recent):
        alerts.append(MaintenanceAlert(
            type="fuel_variance",
            message="Large fuel variances detected, check the tank",
            severity="warning",
        ))
    return alerts

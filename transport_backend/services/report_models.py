"""
Report documents returned by POST /api/reports/data.
"""

from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

Trend = Literal["up", "down", "stable"]


class ReportFilters(BaseModel):
    report_type: Literal["monthly", "driver", "vehicle", "destination", "financial"]
    date_from: date
    date_to: date
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    destination_id: Optional[int] = None
    include_tables: bool = True
    # Chart series (monthly trends) are left empty when false
    include_graphs: bool = True


class ReportTrip(BaseModel):
    id: int
    trip_number: str
    date: date
    driver_id: Optional[int] = None
    driver: str
    vehicle_id: Optional[int] = None
    vehicle: str
    origin: str
    destination: str
    km: float = 0
    containers: int = 0
    fuel_liters: float = 0
    consumption: float = 0
    fuel_cost: float = 0
    total_cost: float = 0
    status: str
    alerts: List[str] = Field(default_factory=list)


class ExecutiveKpis(BaseModel):
    total_trips: int = 0
    trips_change: float = 0
    total_containers: int = 0
    containers_change: float = 0
    total_fuel_cost: float = 0
    fuel_cost_change: float = 0
    total_other_costs: float = 0
    total_cost: float = 0
    cost_change: float = 0
    average_consumption: float = 0
    consumption_trend: Trend = "stable"
    active_alerts: int = 0


class ExecutiveSummary(BaseModel):
    period_from: date
    period_to: date
    label: str
    kpis: ExecutiveKpis
    highlights: List[str] = Field(default_factory=list)


class DriverPerformance(BaseModel):
    id: int
    last_name: str = ""
    first_name: str = ""
    total_trips: int = 0
    total_containers: int = 0
    total_km: float = 0
    average_consumption: float = 0
    total_cost: float = 0
    efficiency: int = 0


class VehiclePerformance(BaseModel):
    id: int
    plate_number: str = ""
    make: str = ""
    model: str = ""
    total_trips: int = 0
    total_km: float = 0
    average_consumption: float = 0
    total_fuel_cost: float = 0
    maintenance_alerts: int = 0
    efficiency: int = 0


class AverageMetrics(BaseModel):
    trips_per_driver: float = 0
    containers_per_driver: float = 0
    consumption_per_vehicle: float = 0
    cost_per_trip: float = 0


class FleetPerformance(BaseModel):
    top_drivers: List[DriverPerformance] = Field(default_factory=list)
    bottom_drivers: List[DriverPerformance] = Field(default_factory=list)
    top_vehicles: List[VehiclePerformance] = Field(default_factory=list)
    bottom_vehicles: List[VehiclePerformance] = Field(default_factory=list)
    average_metrics: AverageMetrics = Field(default_factory=AverageMetrics)


class TotalCosts(BaseModel):
    fuel: float = 0
    tolls: float = 0
    other: float = 0
    subcontracting: float = 0
    total: float = 0


class CostCategory(BaseModel):
    category: str
    amount: float
    percentage: float


class MonthlyCost(BaseModel):
    month: str
    fuel: float = 0
    tolls: float = 0
    other: float = 0
    subcontracting: float = 0
    total: float = 0


class DestinationCost(BaseModel):
    destination: str
    trips: int = 0
    total_cost: float = 0
    average_cost: float = 0
    containers: int = 0


class FinancialAverages(BaseModel):
    fuel_price_per_liter: float = 0
    cost_per_km: float = 0
    cost_per_trip: float = 0
    cost_per_container: float = 0


class FinancialTrends(BaseModel):
    fuel_cost_trend: Trend = "stable"
    total_cost_trend: Trend = "stable"


class FinancialAnalysis(BaseModel):
    total_costs: TotalCosts
    costs_by_category: List[CostCategory]
    costs_by_month: List[MonthlyCost]
    costs_by_destination: List[DestinationCost]
    averages: FinancialAverages
    trends: FinancialTrends


class MonthlyReport(BaseModel):
    type: Literal["monthly"] = "monthly"
    filters: ReportFilters
    executive_summary: ExecutiveSummary
    fleet_performance: FleetPerformance
    financial_analysis: FinancialAnalysis
    detailed_trips: Optional[List[ReportTrip]] = None
    generated_at: datetime


class DriverInfo(BaseModel):
    id: int
    last_name: str
    first_name: str
    phone: str = ""
    hire_date: Optional[date] = None


class DriverStatistics(BaseModel):
    total_trips: int = 0
    total_km: float = 0
    total_containers: int = 0
    average_consumption: float = 0
    total_cost: float = 0
    trips_with_alerts: int = 0


class Comparison(BaseModel):
    vs_average_consumption: float = 0
    vs_average_cost: float = 0
    ranking: int = 0
    total: int = 0


class DriverReport(BaseModel):
    type: Literal["driver"] = "driver"
    filters: ReportFilters
    driver: DriverInfo
    performance: DriverPerformance
    trips: List[ReportTrip]
    statistics: DriverStatistics
    comparison: Comparison
    generated_at: datetime


class VehicleInfo(BaseModel):
    id: int
    plate_number: str
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    fuel_type: str = ""
    odometer: int = 0


class VehicleStatistics(BaseModel):
    total_trips: int = 0
    total_km: float = 0
    average_consumption: float = 0
    total_fuel_cost: float = 0


class VehicleAlerts(BaseModel):
    maintenance_needed: bool = False
    abnormal_consumption: bool = False
    high_mileage: bool = False


class VehicleReport(BaseModel):
    type: Literal["vehicle"] = "vehicle"
    filters: ReportFilters
    vehicle: VehicleInfo
    performance: VehiclePerformance
    trips: List[ReportTrip]
    statistics: VehicleStatistics
    comparison: Comparison
    alerts: VehicleAlerts
    generated_at: datetime


class DestinationInfo(BaseModel):
    id: int
    name: str
    region: str = ""


class DestinationStatistics(BaseModel):
    total_trips: int = 0
    total_containers: int = 0
    total_km: float = 0
    average_cost: float = 0
    total_cost: float = 0


class MonthCount(BaseModel):
    month: str
    count: int


class MonthAmount(BaseModel):
    month: str
    cost: float


class DestinationTrends(BaseModel):
    trips_per_month: List[MonthCount] = Field(default_factory=list)
    costs_per_month: List[MonthAmount] = Field(default_factory=list)


class TopDriver(BaseModel):
    id: int
    name: str
    trips: int


class TopVehicle(BaseModel):
    id: int
    plate_number: str
    trips: int


class DestinationReport(BaseModel):
    type: Literal["destination"] = "destination"
    filters: ReportFilters
    destination: DestinationInfo
    statistics: DestinationStatistics
    trips: List[ReportTrip]
    trends: DestinationTrends
    top_drivers: List[TopDriver]
    top_vehicles: List[TopVehicle]
    generated_at: datetime


class MissionCostLine(BaseModel):
    id: int
    date: date
    subcontractor: str
    cost: float
    advance_paid: bool
    balance_paid: bool
    payment_status: str
    remaining: float


class DetailedCosts(BaseModel):
    trips: List[ReportTrip] = Field(default_factory=list)
    subcontracting_missions: List[MissionCostLine] = Field(default_factory=list)


class Projection(BaseModel):
    next_month_estimate: float
    trend: Trend
    recommendation: str


class FinancialReport(BaseModel):
    type: Literal["financial"] = "financial"
    filters: ReportFilters
    financial_analysis: FinancialAnalysis
    detailed_costs: DetailedCosts
    projections: Optional[Projection] = None
    generated_at: datetime

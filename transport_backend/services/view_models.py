"""
Typed view models returned by the query layer and the statistics engine.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class PageResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    items: List[Any] = Field(default_factory=list)
    count: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 0


class FinancialRollup(BaseModel):
    total_missions: int = 0
    ongoing: int = 0
    completed: int = 0
    cancelled: int = 0
    total_amount: float = 0
    paid_amount: float = 0
    remaining_amount: float = 0


class MissionsFinancialSummary(FinancialRollup):
    # Completed missions whose two tranches are not both settled
    awaiting_payment: int = 0


class VehicleConsumption(BaseModel):
    vehicle_id: int
    plate_number: str = ""
    make: str = ""
    model: str = ""
    average_consumption: float
    trips: int
    total_km: float


class DistributionEntry(BaseModel):
    key: str
    count: Union[int, float]
    percentage: float


class SeriesPoint(BaseModel):
    day: date
    value: Union[int, float]


class TripTotals(BaseModel):
    trips: int = 0
    containers: int = 0
    total_km: float = 0
    fuel_liters: float = 0
    fuel_cost: float = 0
    toll_cost: float = 0
    other_costs: float = 0
    total_cost: float = 0
    average_consumption: float = 0


class EntityTripStats(BaseModel):
    trip_count: int = 0
    total_km: float = 0
    total_containers: int = 0
    average_consumption: Optional[float] = None
    fuel_cost: float = 0
    fees_total: float = 0


class DashboardStats(BaseModel):
    date_from: date
    date_to: date
    total_trips: int
    trips_change: float
    total_containers: int
    total_fuel_cost: float
    fuel_cost_change: float
    total_cost: float
    average_consumption: float
    consumption_trend: str
    active_alerts: int


class SyncQueueStats(BaseModel):
    total: int = 0
    by_entity: dict = Field(default_factory=dict)
    failed: int = 0


class Alert(BaseModel):
    id: str
    type: Literal["fuel_variance", "abnormal_consumption", "pending_payment"]
    severity: Literal["critical", "warning", "info"]
    title: str
    description: str
    date: datetime
    data: Dict[str, Any] = Field(default_factory=dict)


class MaintenanceAlert(BaseModel):
    type: Literal["mileage", "consumption", "fuel_variance"]
    message: str
    severity: Literal["info", "warning", "error"]


class DriverContainerRank(BaseModel):
    rank: int
    driver_id: int
    last_name: str
    first_name: str
    status: str
    containers: int


class DriverConsumptionRank(BaseModel):
    rank: int
    driver_id: int
    last_name: str
    first_name: str
    status: str
    average_consumption: float
    trips: int


class VehicleConsumptionRank(BaseModel):
    rank: int
    vehicle_id: int
    plate_number: str
    make: str = ""
    model: str = ""
    fuel_type: str = ""
    status: str
    average_consumption: float
    trips: int


class MonthlyPerformance(BaseModel):
    month: str
    trips: int = 0
    total_km: float = 0
    containers: int = 0
    average_consumption: float = 0
    total_cost: float = 0

from transport_backend.models.driver import Driver, DriverStatus
from transport_backend.models.vehicle import Vehicle, VehicleStatus, FuelType
from transport_backend.models.location import Location
from transport_backend.models.container_type import ContainerType
from transport_backend.models.trip import Trip, TripContainer, TripStatus, DeliveryStatus
from transport_backend.models.subcontractor import Subcontractor, SubcontractorStatus
from transport_backend.models.mission import Mission, MissionStatus, PaymentStatus
from transport_backend.models.sync_queue import SyncQueueItem, SyncEntity, SyncOperation

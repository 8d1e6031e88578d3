from enum import Enum
from datetime import datetime
from transport_backend.extensions import db

class TripStatus(Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class DeliveryStatus(Enum):
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    RETURNED = "returned"

class Trip(db.Model):
    __tablename__ = 'trip'
    id = db.Column(db.Integer, primary_key=True)
    trip_number = db.Column(db.String(32), nullable=False, unique=True, index=True)
    trip_date = db.Column(db.Date, nullable=False, index=True)
    driver_id = db.Column(db.Integer, db.ForeignKey('driver.id'), nullable=False, index=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicle.id'), nullable=False, index=True)
    origin_id = db.Column(db.Integer, db.ForeignKey('location.id'), nullable=False)
    destination_id = db.Column(db.Integer, db.ForeignKey('location.id'), nullable=False, index=True)

    start_odometer = db.Column(db.Integer, nullable=False)
    end_odometer = db.Column(db.Integer, nullable=True)
    distance = db.Column(db.Float, nullable=True)

    planned_fuel = db.Column(db.Float, nullable=True)
    actual_fuel = db.Column(db.Float, nullable=True)
    fuel_variance = db.Column(db.Float, nullable=True)
    fuel_price = db.Column(db.Float, nullable=True)
    fuel_amount = db.Column(db.Float, nullable=True)
    consumption_per_100 = db.Column(db.Float, nullable=True)

    toll_cost = db.Column(db.Float, nullable=False, default=0)
    other_costs = db.Column(db.Float, nullable=False, default=0)
    total_cost = db.Column(db.Float, nullable=True)

    status = db.Column(db.String(32), nullable=False, default=TripStatus.ONGOING.value, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    driver = db.relationship('Driver', back_populates='trips')
    vehicle = db.relationship('Vehicle', back_populates='trips')
    origin = db.relationship('Location', foreign_keys=[origin_id])
    destination = db.relationship('Location', foreign_keys=[destination_id])
    containers = db.relationship('TripContainer', back_populates='trip', cascade='all, delete-orphan', lazy=True)

    @property
    def container_count(self):
        return sum(c.quantity or 0 for c in self.containers)

class TripContainer(db.Model):
    __tablename__ = 'trip_container'
    id = db.Column(db.Integer, primary_key=True)
    trip_id = db.Column(db.Integer, db.ForeignKey('trip.id', ondelete='CASCADE'), nullable=False, index=True)
    container_type_id = db.Column(db.Integer, db.ForeignKey('container_type.id'), nullable=False)
    container_number = db.Column(db.String(50), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    delivery_status = db.Column(db.String(32), nullable=False, default=DeliveryStatus.IN_TRANSIT.value)

    trip = db.relationship('Trip', back_populates='containers')
    container_type = db.relationship('ContainerType')

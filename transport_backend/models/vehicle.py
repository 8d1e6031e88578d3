from enum import Enum
from datetime import datetime
from transport_backend.extensions import db

class VehicleStatus(Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    INACTIVE = "inactive"
    SOLD = "sold"

class FuelType(Enum):
    DIESEL = "diesel"
    PETROL = "petrol"
    HYBRID = "hybrid"
    ELECTRIC = "electric"

class Vehicle(db.Model):
    __tablename__ = 'vehicle'
    id = db.Column(db.Integer, primary_key=True)
    plate_number = db.Column(db.String(20), nullable=False, unique=True, index=True)
    make = db.Column(db.String(64), nullable=True)
    model = db.Column(db.String(64), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    fuel_type = db.Column(db.String(16), nullable=False, default=FuelType.DIESEL.value, index=True)
    odometer = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default=VehicleStatus.ACTIVE.value, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trips = db.relationship('Trip', back_populates='vehicle', lazy=True)

    @classmethod
    def query_active(cls, session=None):
        return (session or db.session).query(cls).filter_by(status=VehicleStatus.ACTIVE.value)

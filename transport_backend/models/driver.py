from enum import Enum
from datetime import datetime
from transport_backend.extensions import db

class DriverStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    ON_TRIP = "on_trip"
    ON_LEAVE = "on_leave"

class Driver(db.Model):
    __tablename__ = 'driver'
    id = db.Column(db.Integer, primary_key=True)
    last_name = db.Column(db.String(100), nullable=False, index=True)
    first_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    license_number = db.Column(db.String(64), nullable=True, unique=True)
    hire_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(32), nullable=False, default=DriverStatus.ACTIVE.value, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    trips = db.relationship('Trip', back_populates='driver', lazy=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def query_active(cls, session=None):
        """Drivers available for assignment"""
        return (session or db.session).query(cls).filter_by(status=DriverStatus.ACTIVE.value)

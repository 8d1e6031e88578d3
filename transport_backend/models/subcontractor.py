from enum import Enum
from datetime import datetime
from transport_backend.extensions import db

class SubcontractorStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLACKLISTED = "blacklisted"

class Subcontractor(db.Model):
    __tablename__ = 'subcontractor'
    id = db.Column(db.Integer, primary_key=True)
    company_name = db.Column(db.String(200), nullable=False, unique=True, index=True)
    contact_name = db.Column(db.String(100), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(100), nullable=True)
    address = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(32), nullable=False, default=SubcontractorStatus.ACTIVE.value, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    missions = db.relationship('Mission', back_populates='subcontractor', lazy=True)

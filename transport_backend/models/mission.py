from enum import Enum
from datetime import datetime
from transport_backend.extensions import db

class MissionStatus(Enum):
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PaymentStatus(Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETE = "complete"

# Share of the total paid up front; the remainder is the balance tranche
ADVANCE_RATE = 0.9

class Mission(db.Model):
    __tablename__ = 'mission'
    id = db.Column(db.Integer, primary_key=True)
    subcontractor_id = db.Column(db.Integer, db.ForeignKey('subcontractor.id'), nullable=False, index=True)
    mission_date = db.Column(db.Date, nullable=False, index=True)
    origin_id = db.Column(db.Integer, db.ForeignKey('location.id'), nullable=False)
    destination_id = db.Column(db.Integer, db.ForeignKey('location.id'), nullable=False)
    container_type_id = db.Column(db.Integer, db.ForeignKey('container_type.id'), nullable=False)
    container_number = db.Column(db.String(50), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    total_amount = db.Column(db.Float, nullable=False)
    advance_amount = db.Column(db.Float, nullable=False, default=0)
    balance_amount = db.Column(db.Float, nullable=False, default=0)
    advance_paid = db.Column(db.Boolean, nullable=False, default=False)
    balance_paid = db.Column(db.Boolean, nullable=False, default=False)
    advance_paid_date = db.Column(db.Date, nullable=True)
    balance_paid_date = db.Column(db.Date, nullable=True)

    status = db.Column(db.String(32), nullable=False, default=MissionStatus.ONGOING.value, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subcontractor = db.relationship('Subcontractor', back_populates='missions')
    origin = db.relationship('Location', foreign_keys=[origin_id])
    destination = db.relationship('Location', foreign_keys=[destination_id])
    container_type = db.relationship('ContainerType')

    @property
    def payment_status(self):
        from transport_backend.services.aggregates import payment_status
        return payment_status(self.advance_paid, self.balance_paid)

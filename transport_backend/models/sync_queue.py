from enum import Enum
from datetime import datetime
from transport_backend.extensions import db

class SyncEntity(Enum):
    TRIP = "trip"
    CONTAINER = "container"
    DRIVER = "driver"
    VEHICLE = "vehicle"

class SyncOperation(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

class SyncQueueItem(db.Model):
    __tablename__ = 'sync_queue'
    id = db.Column(db.Integer, primary_key=True)
    entity = db.Column(db.String(32), nullable=False, index=True)
    entity_id = db.Column(db.String(64), nullable=False, index=True)
    operation = db.Column(db.String(16), nullable=False)
    payload = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    retry_count = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.Text, nullable=True)

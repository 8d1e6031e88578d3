from transport_backend.extensions import db

class ContainerType(db.Model):
    __tablename__ = 'container_type'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    size_feet = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(256), nullable=True)

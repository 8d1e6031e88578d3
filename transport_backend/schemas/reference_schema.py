from marshmallow import validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from transport_backend.models.location import Location
from transport_backend.models.container_type import ContainerType

class LocationSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Location
    id = auto_field(dump_only=True)
    name = auto_field(required=True, validate=validate.Length(min=1, max=128))
    region = auto_field()

class ContainerTypeSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = ContainerType
    id = auto_field(dump_only=True)
    name = auto_field(required=True, validate=validate.Length(min=1, max=64))
    size_feet = auto_field(required=True, validate=validate.OneOf([20, 40, 45]))
    description = auto_field()

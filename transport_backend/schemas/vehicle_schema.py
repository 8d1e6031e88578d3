from marshmallow import validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from transport_backend.models.vehicle import Vehicle, VehicleStatus, FuelType

class VehicleSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Vehicle
    id = auto_field(dump_only=True)
    plate_number = auto_field(required=True, validate=validate.Length(min=1, max=20))
    make = auto_field()
    model = auto_field()
    year = auto_field(validate=validate.Range(min=1950, max=2100))
    fuel_type = auto_field(validate=validate.OneOf([f.value for f in FuelType]))
    odometer = auto_field(validate=validate.Range(min=0))
    status = auto_field(validate=validate.OneOf([s.value for s in VehicleStatus]))
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)

class VehicleSummarySchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Vehicle
        fields = ('id', 'plate_number', 'make', 'model', 'status')

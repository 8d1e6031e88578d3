from marshmallow import fields, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from transport_backend.models.driver import Driver, DriverStatus

class DriverSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Driver
    id = auto_field(dump_only=True)
    last_name = auto_field(required=True, validate=validate.Length(min=1, max=100))
    first_name = auto_field(required=True, validate=validate.Length(min=1, max=100))
    phone = auto_field(validate=validate.Length(max=32))
    license_number = auto_field(validate=validate.Length(max=64))
    hire_date = auto_field()
    status = auto_field(validate=validate.OneOf([s.value for s in DriverStatus]))
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)

    full_name = fields.String(dump_only=True)

class DriverSummarySchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Driver
        fields = ('id', 'last_name', 'first_name', 'full_name', 'status')
    full_name = fields.String(dump_only=True)

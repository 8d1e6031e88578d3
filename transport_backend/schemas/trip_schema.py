from marshmallow import fields, validate, validates_schema, ValidationError
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from transport_backend.models.trip import Trip, TripContainer, TripStatus, DeliveryStatus
from transport_backend.schemas.driver_schema import DriverSummarySchema
from transport_backend.schemas.vehicle_schema import VehicleSummarySchema
from transport_backend.schemas.reference_schema import LocationSchema, ContainerTypeSchema

class TripContainerSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = TripContainer
        include_fk = True
        exclude = ('trip_id',)
    id = auto_field(dump_only=True)
    container_type_id = auto_field(required=True)
    container_number = auto_field()
    quantity = auto_field(validate=validate.Range(min=1))
    delivery_status = auto_field(validate=validate.OneOf([s.value for s in DeliveryStatus]))

    container_type = fields.Nested(ContainerTypeSchema, dump_only=True)

class TripSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Trip
        include_fk = True
    id = auto_field(dump_only=True)
    trip_number = auto_field(required=False, validate=validate.Length(min=1, max=32))
    trip_date = auto_field(required=True)
    driver_id = auto_field(required=True)
    vehicle_id = auto_field(required=True)
    origin_id = auto_field(required=True)
    destination_id = auto_field(required=True)
    start_odometer = auto_field(required=True, validate=validate.Range(min=0))
    end_odometer = auto_field(validate=validate.Range(min=0))
    planned_fuel = auto_field(validate=validate.Range(min=0))
    actual_fuel = auto_field(validate=validate.Range(min=0))
    fuel_price = auto_field(validate=validate.Range(min=0))
    toll_cost = auto_field(validate=validate.Range(min=0))
    other_costs = auto_field(validate=validate.Range(min=0))
    status = auto_field(validate=validate.OneOf([s.value for s in TripStatus]))
    notes = auto_field()

    # Derived on save
    distance = auto_field(dump_only=True)
    fuel_variance = auto_field(dump_only=True)
    fuel_amount = auto_field(dump_only=True)
    consumption_per_100 = auto_field(dump_only=True)
    total_cost = auto_field(dump_only=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)

    containers = fields.List(fields.Nested(TripContainerSchema))
    container_count = fields.Integer(dump_only=True)
    driver = fields.Nested(DriverSummarySchema, dump_only=True)
    vehicle = fields.Nested(VehicleSummarySchema, dump_only=True)
    origin = fields.Nested(LocationSchema, dump_only=True)
    destination = fields.Nested(LocationSchema, dump_only=True)

    @validates_schema
    def validate_route(self, data, **kwargs):
        origin_id = data.get('origin_id')
        if origin_id is not None and origin_id == data.get('destination_id'):
            raise ValidationError('Origin and destination must be different.', 'destination_id')

    @validates_schema
    def validate_odometer(self, data, **kwargs):
        start, end = data.get('start_odometer'), data.get('end_odometer')
        if start is not None and end is not None and end <= start:
            raise ValidationError('End odometer must be greater than start odometer.', 'end_odometer')

class TripReturnSchema(TripSchema):
    """Readings recorded when a trip comes back."""
    class Meta(TripSchema.Meta):
        fields = ('end_odometer', 'actual_fuel', 'fuel_price', 'toll_cost', 'other_costs', 'notes')
    end_odometer = auto_field(required=True, validate=validate.Range(min=0))

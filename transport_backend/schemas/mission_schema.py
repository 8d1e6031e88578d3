from marshmallow import fields, validate, validates_schema, ValidationError
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from transport_backend.models.mission import Mission, MissionStatus
from transport_backend.schemas.subcontractor_schema import SubcontractorSummarySchema
from transport_backend.schemas.reference_schema import LocationSchema, ContainerTypeSchema

class MissionSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Mission
        include_fk = True
    id = auto_field(dump_only=True)
    subcontractor_id = auto_field(required=True)
    mission_date = auto_field(required=True)
    origin_id = auto_field(required=True)
    destination_id = auto_field(required=True)
    container_type_id = auto_field(required=True)
    container_number = auto_field()
    quantity = auto_field(validate=validate.Range(min=1))
    total_amount = auto_field(required=True, validate=validate.Range(min=0, min_inclusive=False))
    advance_paid = auto_field()
    balance_paid = auto_field()
    advance_paid_date = auto_field()
    balance_paid_date = auto_field()
    status = auto_field(validate=validate.OneOf([s.value for s in MissionStatus]))
    notes = auto_field()

    # 90/10 split is computed from total_amount
    advance_amount = auto_field(dump_only=True)
    balance_amount = auto_field(dump_only=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)

    payment_status = fields.String(dump_only=True)
    subcontractor = fields.Nested(SubcontractorSummarySchema, dump_only=True)
    origin = fields.Nested(LocationSchema, dump_only=True)
    destination = fields.Nested(LocationSchema, dump_only=True)
    container_type = fields.Nested(ContainerTypeSchema, dump_only=True)

    @validates_schema
    def validate_route(self, data, **kwargs):
        origin_id = data.get('origin_id')
        if origin_id is not None and origin_id == data.get('destination_id'):
            raise ValidationError('Origin and destination must be different.', 'destination_id')

class PaymentUpdateSchema(MissionSchema):
    class Meta(MissionSchema.Meta):
        fields = ('advance_paid', 'balance_paid', 'advance_paid_date', 'balance_paid_date')

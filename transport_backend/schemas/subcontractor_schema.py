from marshmallow import validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from transport_backend.models.subcontractor import Subcontractor, SubcontractorStatus

class SubcontractorSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Subcontractor
    id = auto_field(dump_only=True)
    company_name = auto_field(required=True, validate=validate.Length(min=1, max=200))
    contact_name = auto_field()
    phone = auto_field(validate=validate.Length(max=32))
    email = auto_field(validate=validate.Email())
    address = auto_field()
    status = auto_field(validate=validate.OneOf([s.value for s in SubcontractorStatus]))
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)

class SubcontractorSummarySchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Subcontractor
        fields = ('id', 'company_name', 'status')

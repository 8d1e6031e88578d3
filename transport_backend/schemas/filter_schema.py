from marshmallow import Schema, fields, validate, pre_load
from transport_backend.models.driver import DriverStatus
from transport_backend.models.vehicle import VehicleStatus, FuelType
from transport_backend.models.trip import TripStatus
from transport_backend.models.subcontractor import SubcontractorStatus
from transport_backend.models.mission import MissionStatus, PaymentStatus
from transport_backend.utils.pagination import clamp_page, normalize_filters

PAGING_KEYS = ('page', 'page_size', 'sort_by', 'sort_desc')

def _values(enum_cls):
    return [member.value for member in enum_cls]

class ListQuerySchema(Schema):
    """Query-string parameters shared by every list endpoint."""
    page = fields.Integer(load_default=1)
    page_size = fields.Integer(load_default=None)
    sort_by = fields.String()
    sort_desc = fields.Boolean(load_default=None, allow_none=True)
    search = fields.String(validate=validate.Length(max=100))

    @pre_load
    def drop_blank(self, data, **kwargs):
        return normalize_filters(dict(data))

    def split(self, data):
        """Separate paging arguments from entity filters."""
        paging = {key: data.get(key) for key in PAGING_KEYS}
        paging['page'], paging['page_size'] = clamp_page(paging['page'], paging['page_size'])
        filters = {key: value for key, value in data.items() if key not in PAGING_KEYS}
        return filters, paging

class DriverFilterSchema(ListQuerySchema):
    status = fields.String(validate=validate.OneOf(_values(DriverStatus)))

class VehicleFilterSchema(ListQuerySchema):
    status = fields.String(validate=validate.OneOf(_values(VehicleStatus)))
    fuel_type = fields.String(validate=validate.OneOf(_values(FuelType)))

class SubcontractorFilterSchema(ListQuerySchema):
    status = fields.String(validate=validate.OneOf(_values(SubcontractorStatus)))

class TripFilterSchema(ListQuerySchema):
    status = fields.String(validate=validate.OneOf(_values(TripStatus)))
    driver_id = fields.Integer()
    vehicle_id = fields.Integer()
    origin_id = fields.Integer()
    destination_id = fields.Integer()
    date_from = fields.Date()
    date_to = fields.Date()

class MissionFilterSchema(ListQuerySchema):
    status = fields.String(validate=validate.OneOf(_values(MissionStatus)))
    payment_status = fields.String(validate=validate.OneOf(_values(PaymentStatus)))
    subcontractor_id = fields.Integer()
    origin_id = fields.Integer()
    destination_id = fields.Integer()
    container_type_id = fields.Integer()
    date_from = fields.Date()
    date_to = fields.Date()

class PeriodSchema(Schema):
    """Optional date window for statistics endpoints."""
    date_from = fields.Date()
    date_to = fields.Date()
    limit = fields.Integer(load_default=10, validate=validate.Range(min=1, max=100))
    fill = fields.Boolean(load_default=False)

class AlertQuerySchema(Schema):
    limit = fields.Integer(load_default=10, validate=validate.Range(min=1, max=100))

class EvolutionSchema(Schema):
    """Trailing window, in calendar months, for performance evolution."""
    months = fields.Integer(load_default=12, validate=validate.Range(min=1, max=36))

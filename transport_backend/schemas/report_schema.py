from flask import current_app, has_app_context
from marshmallow import Schema, fields, validate, validates_schema, post_load, ValidationError
from transport_backend.services.report_models import ReportFilters
from transport_backend.utils.timezone_utils import parse_datetime_string, to_display_date

REPORT_TYPES = ('monthly', 'driver', 'vehicle', 'destination', 'financial')
DEFAULT_MAX_RANGE_DAYS = 365

# Report types that need a target entity
REQUIRED_TARGETS = {
    'driver': 'driver_id',
    'vehicle': 'vehicle_id',
    'destination': 'destination_id',
}

def max_range_days():
    if has_app_context():
        return current_app.config.get('MAX_REPORT_RANGE_DAYS', DEFAULT_MAX_RANGE_DAYS)
    return DEFAULT_MAX_RANGE_DAYS

def _local_day(value):
    try:
        return to_display_date(parse_datetime_string(value))
    except (TypeError, ValueError):
        return None

class ReportRequestSchema(Schema):
    """Body of POST /api/reports/data; ISO instants are read as display-timezone days."""
    report_type = fields.String(data_key='reportType', required=True, validate=validate.OneOf(REPORT_TYPES))
    date_from = fields.String(data_key='dateFrom', required=True)
    date_to = fields.String(data_key='dateTo', required=True)
    driver_id = fields.Integer(data_key='driverId', allow_none=True)
    vehicle_id = fields.Integer(data_key='vehicleId', allow_none=True)
    destination_id = fields.Integer(data_key='destinationId', allow_none=True)
    include_graphs = fields.Boolean(data_key='includeGraphs', load_default=True)
    include_tables = fields.Boolean(data_key='includeTables', load_default=True)

    @validates_schema
    def validate_period(self, data, **kwargs):
        date_from = _local_day(data.get('date_from'))
        date_to = _local_day(data.get('date_to'))
        errors = {}
        if data.get('date_from') and date_from is None:
            errors['dateFrom'] = ['Not a valid datetime.']
        if data.get('date_to') and date_to is None:
            errors['dateTo'] = ['Not a valid datetime.']
        if date_from and date_to:
            if date_to < date_from:
                errors['dateTo'] = ['End date must be on or after start date.']
            elif (date_to - date_from).days > max_range_days():
                errors['dateTo'] = [f'Report period cannot exceed {max_range_days()} days.']
        if errors:
            raise ValidationError(errors)

    @validates_schema
    def validate_target(self, data, **kwargs):
        target = REQUIRED_TARGETS.get(data.get('report_type'))
        if target and not data.get(target):
            key = self.fields[target].data_key
            raise ValidationError(f"{key} is required for {data['report_type']} reports.", key)

    @post_load
    def make_filters(self, data, **kwargs):
        return ReportFilters(
            report_type=data['report_type'],
            date_from=_local_day(data['date_from']),
            date_to=_local_day(data['date_to']),
            driver_id=data.get('driver_id'),
            vehicle_id=data.get('vehicle_id'),
            destination_id=data.get('destination_id'),
            include_tables=data['include_tables'],
            include_graphs=data['include_graphs'],
        )

from flask import Blueprint, request, jsonify
from marshmallow import ValidationError
from transport_backend.api.responses import (
    validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.schemas.report_schema import ReportRequestSchema
from transport_backend.services.report_service import ReportService
from transport_backend.services.errors import ServiceError

reports_bp = Blueprint('reports', __name__)
request_schema = ReportRequestSchema()

@reports_bp.route('/reports/data', methods=['POST'])
def report_data():
    """
    Build a report document for a period.

    Body (JSON):
    - reportType (string): monthly | driver | vehicle | destination | financial
    - dateFrom, dateTo (string): ISO-8601 instants, read as display-timezone days
    - driverId / vehicleId / destinationId (int): required by the matching report type
    - includeTables (bool, optional): include detailed rows (default: true)

    Returns:
    - JSON report; errors are {"error": "..."} with a non-2xx status
    """
    try:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400
        filters = request_schema.load(body)
        report = ReportService().build(filters)
        return jsonify(report.model_dump(mode='json')), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('report_data', e)

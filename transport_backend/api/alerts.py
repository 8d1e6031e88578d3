from flask import Blueprint, request, jsonify
from marshmallow import ValidationError
from transport_backend.api.responses import (
    validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.schemas.filter_schema import AlertQuerySchema
from transport_backend.services.alert_service import AlertService
from transport_backend.services.errors import ServiceError

alerts_bp = Blueprint('alerts', __name__)
query_schema = AlertQuerySchema()

def _limit():
    return query_schema.load(request.args.to_dict())['limit']

def _dump_all(alerts):
    return [a.model_dump(mode='json') for a in alerts]

@alerts_bp.route('/alerts', methods=['GET'])
def active_alerts():
    try:
        return jsonify(_dump_all(AlertService().active(_limit()))), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('active_alerts', e)

@alerts_bp.route('/alerts/count', methods=['GET'])
def alert_count():
    try:
        return jsonify({'count': AlertService().count()}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('alert_count', e)

@alerts_bp.route('/alerts/fuel-variance', methods=['GET'])
def fuel_variance_alerts():
    try:
        return jsonify(_dump_all(AlertService().fuel_variance(_limit()))), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('fuel_variance_alerts', e)

@alerts_bp.route('/alerts/consumption', methods=['GET'])
def consumption_alerts():
    try:
        return jsonify(_dump_all(AlertService().abnormal_consumption(_limit()))), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('consumption_alerts', e)

@alerts_bp.route('/alerts/pending-payments', methods=['GET'])
def pending_payment_alerts():
    try:
        return jsonify(_dump_all(AlertService().pending_payments(_limit()))), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('pending_payment_alerts', e)

from flask import Blueprint, request, jsonify
from marshmallow import ValidationError
from transport_backend.api.responses import (
    page_response, validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.schemas.mission_schema import MissionSchema, PaymentUpdateSchema
from transport_backend.schemas.filter_schema import MissionFilterSchema
from transport_backend.services.mission_service import MissionService
from transport_backend.services.errors import ServiceError

mission_bp = Blueprint('mission', __name__)
schema = MissionSchema()
schema_many = MissionSchema(many=True)
filter_schema = MissionFilterSchema()
payment_schema = PaymentUpdateSchema()

@mission_bp.route('/missions', methods=['GET'])
def list_missions():
    try:
        filters, paging = filter_schema.split(filter_schema.load(request.args.to_dict()))
        result = MissionService().list(filters, **paging)
        return page_response(result, schema_many)
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_missions', e)

@mission_bp.route('/missions/awaiting-payment', methods=['GET'])
def missions_awaiting_payment():
    try:
        missions = MissionService().awaiting_payment()
        return jsonify(schema_many.dump(missions)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('missions_awaiting_payment', e)

@mission_bp.route('/missions/summary', methods=['GET'])
def missions_summary():
    try:
        filters, _ = filter_schema.split(filter_schema.load(request.args.to_dict()))
        summary = MissionService().financial_summary(filters)
        return jsonify(summary.model_dump(mode='json')), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('missions_summary', e)

@mission_bp.route('/missions/<int:mission_id>', methods=['GET'])
def get_mission(mission_id):
    try:
        mission = MissionService().get_by_id(mission_id)
        if not mission:
            return jsonify({'error': 'Mission not found'}), 404
        return jsonify(schema.dump(mission)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('get_mission', e)

@mission_bp.route('/missions', methods=['POST'])
def create_mission():
    try:
        data = schema.load(request.get_json() or {})
        mission = MissionService().create(data)
        return jsonify(schema.dump(mission)), 201
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create_mission', e)

@mission_bp.route('/missions/<int:mission_id>', methods=['PUT'])
def update_mission(mission_id):
    try:
        data = schema.load(request.get_json() or {}, partial=True)
        mission = MissionService().update(mission_id, data)
        return jsonify(schema.dump(mission)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update_mission', e)

@mission_bp.route('/missions/<int:mission_id>', methods=['DELETE'])
def delete_mission(mission_id):
    try:
        MissionService().delete(mission_id)
        return jsonify({'message': 'Mission deleted'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('delete_mission', e)

@mission_bp.route('/missions/<int:mission_id>/pay-advance', methods=['POST'])
def pay_mission_advance(mission_id):
    try:
        data = payment_schema.load(request.get_json(silent=True) or {}, partial=True)
        mission = MissionService().pay_advance(mission_id, data.get('advance_paid_date'))
        return jsonify(schema.dump(mission)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('pay_mission_advance', e)

@mission_bp.route('/missions/<int:mission_id>/pay-balance', methods=['POST'])
def pay_mission_balance(mission_id):
    try:
        data = payment_schema.load(request.get_json(silent=True) or {}, partial=True)
        mission = MissionService().pay_balance(mission_id, data.get('balance_paid_date'))
        return jsonify(schema.dump(mission)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('pay_mission_balance', e)

@mission_bp.route('/missions/<int:mission_id>/payment', methods=['PUT'])
def update_mission_payment(mission_id):
    try:
        data = payment_schema.load(request.get_json() or {}, partial=True)
        mission = MissionService().update_payment(mission_id, **data)
        return jsonify(schema.dump(mission)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update_mission_payment', e)

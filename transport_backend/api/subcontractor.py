from flask import Blueprint, request, jsonify
from marshmallow import ValidationError
from transport_backend.api.responses import (
    page_response, validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.schemas.subcontractor_schema import SubcontractorSchema
from transport_backend.schemas.filter_schema import SubcontractorFilterSchema, ListQuerySchema
from transport_backend.schemas.mission_schema import MissionSchema
from transport_backend.services.subcontractor_service import SubcontractorService
from transport_backend.services.mission_service import MissionService
from transport_backend.services.errors import ServiceError

subcontractor_bp = Blueprint('subcontractor', __name__)
schema = SubcontractorSchema()
schema_many = SubcontractorSchema(many=True)
filter_schema = SubcontractorFilterSchema()
history_schema = ListQuerySchema()
mission_schema_many = MissionSchema(many=True)

@subcontractor_bp.route('/subcontractors', methods=['GET'])
def list_subcontractors():
    try:
        filters, paging = filter_schema.split(filter_schema.load(request.args.to_dict()))
        result = SubcontractorService().list(filters, **paging)
        return page_response(result, schema_many)
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_subcontractors', e)

@subcontractor_bp.route('/subcontractors/<int:subcontractor_id>', methods=['GET'])
def get_subcontractor(subcontractor_id):
    try:
        subcontractor = SubcontractorService().get_by_id(subcontractor_id)
        if not subcontractor:
            return jsonify({'error': 'Subcontractor not found'}), 404
        return jsonify(schema.dump(subcontractor)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('get_subcontractor', e)

@subcontractor_bp.route('/subcontractors', methods=['POST'])
def create_subcontractor():
    try:
        data = schema.load(request.get_json() or {})
        subcontractor = SubcontractorService().create(data)
        return jsonify(schema.dump(subcontractor)), 201
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create_subcontractor', e)

@subcontractor_bp.route('/subcontractors/<int:subcontractor_id>', methods=['PUT'])
def update_subcontractor(subcontractor_id):
    try:
        data = schema.load(request.get_json() or {}, partial=True)
        subcontractor = SubcontractorService().update(subcontractor_id, data)
        return jsonify(schema.dump(subcontractor)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update_subcontractor', e)

@subcontractor_bp.route('/subcontractors/<int:subcontractor_id>', methods=['DELETE'])
def delete_subcontractor(subcontractor_id):
    try:
        SubcontractorService().delete(subcontractor_id)
        return jsonify({'message': 'Subcontractor deleted'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('delete_subcontractor', e)

@subcontractor_bp.route('/subcontractors/<int:subcontractor_id>/financials', methods=['GET'])
def subcontractor_financials(subcontractor_id):
    try:
        rollup = SubcontractorService().financial_rollup(subcontractor_id)
        return jsonify(rollup.model_dump(mode='json')), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('subcontractor_financials', e)

@subcontractor_bp.route('/subcontractors/<int:subcontractor_id>/missions', methods=['GET'])
def subcontractor_missions(subcontractor_id):
    try:
        if not SubcontractorService().get_by_id(subcontractor_id):
            return jsonify({'error': 'Subcontractor not found'}), 404
        _, paging = history_schema.split(history_schema.load(request.args.to_dict()))
        result = MissionService().list({'subcontractor_id': subcontractor_id}, **paging)
        return page_response(result, mission_schema_many)
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('subcontractor_missions', e)

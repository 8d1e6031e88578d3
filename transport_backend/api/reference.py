from flask import Blueprint, request, jsonify
from marshmallow import ValidationError
from transport_backend.api.responses import (
    validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.schemas.reference_schema import LocationSchema, ContainerTypeSchema
from transport_backend.services.reference_service import ReferenceService
from transport_backend.services.errors import ServiceError

reference_bp = Blueprint('reference', __name__)
location_schema = LocationSchema()
location_schema_many = LocationSchema(many=True)
container_type_schema = ContainerTypeSchema()
container_type_schema_many = ContainerTypeSchema(many=True)

@reference_bp.route('/locations', methods=['GET'])
def list_locations():
    try:
        locations = ReferenceService().list_locations(request.args.get('region'))
        return jsonify(location_schema_many.dump(locations)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_locations', e)

@reference_bp.route('/locations', methods=['POST'])
def create_location():
    try:
        data = location_schema.load(request.get_json() or {})
        location = ReferenceService().create_location(data)
        return jsonify(location_schema.dump(location)), 201
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create_location', e)

@reference_bp.route('/container-types', methods=['GET'])
def list_container_types():
    try:
        container_types = ReferenceService().list_container_types()
        return jsonify(container_type_schema_many.dump(container_types)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_container_types', e)

@reference_bp.route('/container-types', methods=['POST'])
def create_container_type():
    try:
        data = container_type_schema.load(request.get_json() or {})
        container_type = ReferenceService().create_container_type(data)
        return jsonify(container_type_schema.dump(container_type)), 201
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create_container_type', e)

from flask import Blueprint, request, jsonify
from marshmallow import ValidationError
from transport_backend.api.responses import (
    page_response, validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.schemas.trip_schema import TripSchema, TripReturnSchema
from transport_backend.schemas.filter_schema import TripFilterSchema
from transport_backend.services.trip_service import TripService
from transport_backend.services.errors import ServiceError

trip_bp = Blueprint('trip', __name__)
schema = TripSchema()
schema_many = TripSchema(many=True)
filter_schema = TripFilterSchema()
return_schema = TripReturnSchema()

@trip_bp.route('/trips', methods=['GET'])
def list_trips():
    try:
        filters, paging = filter_schema.split(filter_schema.load(request.args.to_dict()))
        result = TripService().list(filters, **paging)
        return page_response(result, schema_many)
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_trips', e)

@trip_bp.route('/trips/summary', methods=['GET'])
def trips_summary():
    try:
        filters, _ = filter_schema.split(filter_schema.load(request.args.to_dict()))
        totals = TripService().summary(filters)
        return jsonify(totals.model_dump(mode='json')), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('trips_summary', e)

@trip_bp.route('/trips/<int:trip_id>', methods=['GET'])
def get_trip(trip_id):
    try:
        trip = TripService().get_by_id(trip_id)
        if not trip:
            return jsonify({'error': 'Trip not found'}), 404
        return jsonify(schema.dump(trip)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('get_trip', e)

@trip_bp.route('/trips/number/<string:trip_number>', methods=['GET'])
def get_trip_by_number(trip_number):
    try:
        trip = TripService().get_by_number(trip_number)
        if not trip:
            return jsonify({'error': 'Trip not found'}), 404
        return jsonify(schema.dump(trip)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('get_trip_by_number', e)

@trip_bp.route('/trips', methods=['POST'])
def create_trip():
    try:
        data = schema.load(request.get_json() or {})
        trip = TripService().create(data)
        return jsonify(schema.dump(trip)), 201
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create_trip', e)

@trip_bp.route('/trips/<int:trip_id>', methods=['PUT'])
def update_trip(trip_id):
    try:
        data = schema.load(request.get_json() or {}, partial=True)
        trip = TripService().update(trip_id, data)
        return jsonify(schema.dump(trip)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update_trip', e)

@trip_bp.route('/trips/<int:trip_id>', methods=['DELETE'])
def delete_trip(trip_id):
    try:
        TripService().delete(trip_id)
        return jsonify({'message': 'Trip deleted'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('delete_trip', e)

@trip_bp.route('/trips/<int:trip_id>/return', methods=['POST'])
def record_trip_return(trip_id):
    try:
        data = return_schema.load(request.get_json() or {})
        trip = TripService().record_return(trip_id, data)
        return jsonify(schema.dump(trip)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('record_trip_return', e)

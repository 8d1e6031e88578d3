from flask import Blueprint, request, jsonify
from marshmallow import ValidationError
from transport_backend.api.responses import (
    page_response, validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.schemas.driver_schema import DriverSchema
from transport_backend.schemas.filter_schema import DriverFilterSchema, EvolutionSchema, ListQuerySchema, PeriodSchema
from transport_backend.schemas.trip_schema import TripSchema
from transport_backend.services.driver_service import DriverService
from transport_backend.services.errors import ServiceError
from transport_backend.services.trip_service import TripService

driver_bp = Blueprint('driver', __name__)
schema = DriverSchema()
schema_many = DriverSchema(many=True)
filter_schema = DriverFilterSchema()
history_schema = ListQuerySchema()
period_schema = PeriodSchema()
evolution_schema = EvolutionSchema()
trip_schema_many = TripSchema(many=True)

@driver_bp.route('/drivers', methods=['GET'])
def list_drivers():
    try:
        filters, paging = filter_schema.split(filter_schema.load(request.args.to_dict()))
        result = DriverService().list(filters, **paging)
        return page_response(result, schema_many)
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_drivers', e)

@driver_bp.route('/drivers/active', methods=['GET'])
def list_active_drivers():
    try:
        drivers = DriverService().get_active()
        return jsonify(schema_many.dump(drivers)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_active_drivers', e)

@driver_bp.route('/drivers/<int:driver_id>', methods=['GET'])
def get_driver(driver_id):
    try:
        driver = DriverService().get_by_id(driver_id)
        if not driver:
            return jsonify({'error': 'Driver not found'}), 404
        return jsonify(schema.dump(driver)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('get_driver', e)

@driver_bp.route('/drivers', methods=['POST'])
def create_driver():
    try:
        data = schema.load(request.get_json() or {})
        driver = DriverService().create(data)
        return jsonify(schema.dump(driver)), 201
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create_driver', e)

@driver_bp.route('/drivers/<int:driver_id>', methods=['PUT'])
def update_driver(driver_id):
    try:
        data = schema.load(request.get_json() or {}, partial=True)
        driver = DriverService().update(driver_id, data)
        return jsonify(schema.dump(driver)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update_driver', e)

@driver_bp.route('/drivers/<int:driver_id>', methods=['DELETE'])
def delete_driver(driver_id):
    try:
        driver = DriverService().delete(driver_id)
        return jsonify({'message': 'Driver deactivated', 'driver': schema.dump(driver)}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('delete_driver', e)

@driver_bp.route('/drivers/<int:driver_id>/stats', methods=['GET'])
def driver_stats(driver_id):
    try:
        period = period_schema.load(request.args.to_dict())
        stats = DriverService().stats(driver_id, period.get('date_from'), period.get('date_to'))
        return jsonify(stats.model_dump(mode='json')), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('driver_stats', e)

@driver_bp.route('/drivers/<int:driver_id>/trips', methods=['GET'])
def driver_trips(driver_id):
    try:
        if not DriverService().get_by_id(driver_id):
            return jsonify({'error': 'Driver not found'}), 404
        _, paging = history_schema.split(history_schema.load(request.args.to_dict()))
        result = TripService().list({'driver_id': driver_id}, **paging)
        return page_response(result, trip_schema_many)
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('driver_trips', e)

@driver_bp.route('/drivers/rankings/containers', methods=['GET'])
def driver_container_ranking():
    try:
        period = period_schema.load(request.args.to_dict())
        ranking = DriverService().container_ranking(period['limit'], period.get('date_from'), period.get('date_to'))
        return jsonify([r.model_dump(mode='json') for r in ranking]), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('driver_container_ranking', e)

@driver_bp.route('/drivers/rankings/economical', methods=['GET'])
def driver_economical_ranking():
    try:
        period = period_schema.load(request.args.to_dict())
        ranking = DriverService().economical_ranking(period['limit'], period.get('date_from'), period.get('date_to'))
        return jsonify([r.model_dump(mode='json') for r in ranking]), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('driver_economical_ranking', e)

@driver_bp.route('/drivers/<int:driver_id>/evolution', methods=['GET'])
def driver_evolution(driver_id):
    try:
        months = evolution_schema.load(request.args.to_dict())['months']
        evolution = DriverService().performance_evolution(driver_id, months)
        return jsonify([m.model_dump(mode='json') for m in evolution]), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('driver_evolution', e)

from flask import Blueprint, request, jsonify
from marshmallow import ValidationError
from transport_backend.api.responses import (
    page_response, validation_error_response, service_error_response, unexpected_error_response,
)
from transport_backend.schemas.vehicle_schema import VehicleSchema
from transport_backend.schemas.filter_schema import VehicleFilterSchema, EvolutionSchema, ListQuerySchema, PeriodSchema
from transport_backend.schemas.trip_schema import TripSchema
from transport_backend.services.vehicle_service import VehicleService
from transport_backend.services.errors import ServiceError
from transport_backend.services.trip_service import TripService

vehicle_bp = Blueprint('vehicle', __name__)
schema = VehicleSchema()
schema_many = VehicleSchema(many=True)
filter_schema = VehicleFilterSchema()
history_schema = ListQuerySchema()
period_schema = PeriodSchema()
evolution_schema = EvolutionSchema()
trip_schema_many = TripSchema(many=True)

@vehicle_bp.route('/vehicles', methods=['GET'])
def list_vehicles():
    try:
        filters, paging = filter_schema.split(filter_schema.load(request.args.to_dict()))
        result = VehicleService().list(filters, **paging)
        return page_response(result, schema_many)
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_vehicles', e)

@vehicle_bp.route('/vehicles/active', methods=['GET'])
def list_active_vehicles():
    try:
        vehicles = VehicleService().get_active()
        return jsonify(schema_many.dump(vehicles)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('list_active_vehicles', e)

@vehicle_bp.route('/vehicles/<int:vehicle_id>', methods=['GET'])
def get_vehicle(vehicle_id):
    try:
        vehicle = VehicleService().get_by_id(vehicle_id)
        if not vehicle:
            return jsonify({'error': 'Vehicle not found'}), 404
        return jsonify(schema.dump(vehicle)), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('get_vehicle', e)

@vehicle_bp.route('/vehicles', methods=['POST'])
def create_vehicle():
    try:
        data = schema.load(request.get_json() or {})
        vehicle = VehicleService().create(data)
        return jsonify(schema.dump(vehicle)), 201
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('create_vehicle', e)

@vehicle_bp.route('/vehicles/<int:vehicle_id>', methods=['PUT'])
def update_vehicle(vehicle_id):
    try:
        data = schema.load(request.get_json() or {}, partial=True)
        vehicle = VehicleService().update(vehicle_id, data)
        return jsonify(schema.dump(vehicle)), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('update_vehicle', e)

@vehicle_bp.route('/vehicles/<int:vehicle_id>', methods=['DELETE'])
def delete_vehicle(vehicle_id):
    try:
        VehicleService().delete(vehicle_id)
        return jsonify({'message': 'Vehicle deleted'}), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('delete_vehicle', e)

@vehicle_bp.route('/vehicles/<int:vehicle_id>/stats', methods=['GET'])
def vehicle_stats(vehicle_id):
    try:
        period = period_schema.load(request.args.to_dict())
        stats = VehicleService().stats(vehicle_id, period.get('date_from'), period.get('date_to'))
        return jsonify(stats.model_dump(mode='json')), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('vehicle_stats', e)

@vehicle_bp.route('/vehicles/<int:vehicle_id>/trips', methods=['GET'])
def vehicle_trips(vehicle_id):
    try:
        if not VehicleService().get_by_id(vehicle_id):
            return jsonify({'error': 'Vehicle not found'}), 404
        _, paging = history_schema.split(history_schema.load(request.args.to_dict()))
        result = TripService().list({'vehicle_id': vehicle_id}, **paging)
        return page_response(result, trip_schema_many)
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('vehicle_trips', e)

@vehicle_bp.route('/vehicles/rankings/economical', methods=['GET'])
def economical_vehicles():
    try:
        period = period_schema.load(request.args.to_dict())
        ranking = VehicleService().economical(period['limit'], period.get('date_from'), period.get('date_to'))
        return jsonify([r.model_dump(mode='json') for r in ranking]), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('economical_vehicles', e)

@vehicle_bp.route('/vehicles/rankings/problematic', methods=['GET'])
def problematic_vehicles():
    try:
        period = period_schema.load(request.args.to_dict())
        ranking = VehicleService().problematic(period['limit'], period.get('date_from'), period.get('date_to'))
        return jsonify([r.model_dump(mode='json') for r in ranking]), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('problematic_vehicles', e)

@vehicle_bp.route('/vehicles/<int:vehicle_id>/evolution', methods=['GET'])
def vehicle_evolution(vehicle_id):
    try:
        months = evolution_schema.load(request.args.to_dict())['months']
        evolution = VehicleService().performance_evolution(vehicle_id, months)
        return jsonify([m.model_dump(mode='json') for m in evolution]), 200
    except ValidationError as ve:
        return validation_error_response(ve)
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('vehicle_evolution', e)

@vehicle_bp.route('/vehicles/<int:vehicle_id>/maintenance-alerts', methods=['GET'])
def vehicle_maintenance_alerts(vehicle_id):
    try:
        alerts = VehicleService().maintenance_alerts(vehicle_id)
        return jsonify([a.model_dump(mode='json') for a in alerts]), 200
    except ServiceError as se:
        return service_error_response(se)
    except Exception as e:
        return unexpected_error_response('vehicle_maintenance_alerts', e)
